# ===========================================
# COMMON COMPONENTS
# ===========================================

JSON_FORMATTING_RULES = """
**IMPORTANT: JSON Formatting Rules**
- The entire output must be a single, valid JSON object.
- All string values must be enclosed in double quotes.
- Any double quotes that are part of a string's content must be escaped with a backslash.
- Do not wrap the JSON in prose. A ```json fenced block is acceptable.
"""

# ===========================================
# RELATIONSHIP CLASSIFICATION
# ===========================================

RELATIONSHIP_SYSTEM_PROMPT = (
    "You analyze entries from a personal life timeline and decide whether two "
    "events are meaningfully connected. You always answer with a single JSON object."
)

EVENT_BLOCK_TEMPLATE = """EVENT {index}:
Title: {title}
Date: {date_range}
Description: {description}
Category: {category}"""

RELATIONSHIP_ANALYSIS_PROMPT = (
    """Analyze the relationship between these two life events:

{event_1}

{event_2}

Determine if there is a meaningful relationship between these events. Return ONLY valid JSON:

{{
  "hasRelationship": true,
  "type": "causal|thematic|temporal|person|location|other",
  "confidence": 0.85,
  "explanation": "Brief explanation of the relationship"
}}

Relationship types:
- causal: Event 1 caused or led to Event 2
- thematic: Events share similar themes or topics
- temporal: Events are part of a sequence or pattern over time
- person: Events involve the same people
- location: Events occurred in the same place
- other: Other meaningful connection

"confidence" is a number between 0 and 1.
Return false for hasRelationship if the events are not meaningfully connected.
"""
    + JSON_FORMATTING_RULES
)
