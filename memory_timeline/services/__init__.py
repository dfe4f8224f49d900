"""
Memory Timeline Services Package - semantic cross-referencing for timeline events

Services that embed events, find their nearest neighbours and turn those
neighbours into typed, confidence-scored relationships.

Core Services:
- engine: Wires the services below together from settings
- embedding_service & embedding_providers: Event embeddings through a configured provider
- similarity_search: Brute-force cosine similarity over stored embeddings
- relationship_classifier: LLM relationship analysis with a heuristic fallback
- timeline_analysis: Single-event and full-timeline cross-reference discovery
- pattern_detector: Recurring categories, busy months and era transitions
- tag_suggestion: Tags proposed from an event's semantic neighbours
- llm_service & llm_interface: Multi-provider chat-completion clients
"""
