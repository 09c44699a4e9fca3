"""Error taxonomy for the debate service."""


class DebateError(Exception):
    """Base class for all debate service errors."""


class ValidationError(DebateError):
    """Raised when a debate request is malformed (e.g. empty or oversized topic)."""


class RateLimitError(DebateError):
    """Raised when a caller exceeds the session start rate."""

    def __init__(self, identity: str, window_seconds: float, max_requests: int):
        self.identity = identity
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        super().__init__(
            f"Rate limit exceeded for {identity}: "
            f"max {max_requests} debates per {window_seconds:g}s"
        )


class BindingError(DebateError):
    """Raised when no backend can be constructed for a role."""

    def __init__(self, role: str, model_id: str, detail: str):
        self.role = role
        self.model_id = model_id
        self.detail = detail
        super().__init__(f"Failed to bind {role} to {model_id}: {detail}")


class TransportError(DebateError):
    """Raised when a backend call fails to start or breaks mid-stream."""

    def __init__(self, provider: str, model: str, detail: str):
        self.provider = provider
        self.model = model
        self.detail = detail
        super().__init__(f"{provider} ({model}): {detail}")


class ToolError(DebateError):
    """Raised when a single tool invocation (web search) fails."""


class PersistenceError(DebateError):
    """Raised when a transcript entry cannot be written to storage."""
