"""
Typed failures raised by the cross-reference engine.

Each exception carries a stable `error_type` string that services copy into
their result objects, so callers can branch on the reason without parsing
messages.
"""


class CrossReferenceEngineError(Exception):
    error_type = "engine_error"


class EventNotFoundError(CrossReferenceEngineError):
    error_type = "event_not_found"

    def __init__(self, event_id: str):
        super().__init__(f"Event {event_id} not found")
        self.event_id = event_id


class NotEmbeddedError(CrossReferenceEngineError):
    """The source event has no stored embedding; embed it first."""

    error_type = "not_embedded"

    def __init__(self, event_id: str):
        super().__init__(f"Event {event_id} has no embedding")
        self.event_id = event_id


class DimensionMismatchError(CrossReferenceEngineError):
    """The store mixes vector spaces, usually after a provider switch without clearing."""

    error_type = "dimension_mismatch"

    def __init__(self, source_event_id: str, expected: int, event_id: str, actual: int):
        super().__init__(
            f"Embedding for event {event_id} has dimension {actual}, but source event "
            f"{source_event_id} has dimension {expected}. Clear all embeddings before "
            f"switching embedding provider or model."
        )
        self.expected = expected
        self.actual = actual
        self.event_id = event_id


class UnsupportedProviderError(CrossReferenceEngineError):
    error_type = "unsupported_provider"

    def __init__(self, provider: str):
        super().__init__(f"Unsupported embedding provider: {provider}")
        self.provider = provider


class ProviderAuthError(CrossReferenceEngineError):
    error_type = "provider_auth"


class ProviderRequestError(CrossReferenceEngineError):
    error_type = "provider_request"


class ClassificationParseError(CrossReferenceEngineError):
    """The LLM answer could not be decoded into a relationship classification."""

    error_type = "classification_parse"


class AnalysisAlreadyRunningError(CrossReferenceEngineError):
    error_type = "already_running"

    def __init__(self):
        super().__init__("A timeline analysis is already running")
