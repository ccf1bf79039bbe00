"""Core engine errors."""


class TilbotError(Exception):
    """Base class for all Tilbot errors."""

    pass


class ConfigError(TilbotError):
    """Raised when the runtime configuration is invalid."""


class ProjectError(TilbotError):
    """Raised when a project document is rejected before a session starts.

    Carries every problem found, not just the first one.
    """

    def __init__(self, message: str, problems: list[str] | None = None):
        self.problems = list(problems or [])
        if self.problems:
            message = f"{message}: " + "; ".join(self.problems)
        super().__init__(message)


class GraphResolutionError(TilbotError):
    """Raised when a block id or a group path segment does not exist."""

    def __init__(self, block_id: str | None, path: list[str] | None = None):
        self.block_id = block_id
        self.path = list(path or [])
        where = "/".join(self.path) if self.path else "<root>"
        super().__init__(f"Block '{block_id}' not found at {where}")


class ExternalQueryError(TilbotError):
    """Raised by data providers when a table query cannot be answered."""

    pass


class SessionError(TilbotError):
    """Raised when session lifecycle operations fail."""

    pass


class SessionClosedError(SessionError):
    """Input arrived for a session that has already been closed."""

    pass


class SessionNotFoundError(SessionError):
    """No session is registered under the given id."""

    pass


class SessionExistsError(SessionError):
    """A session is already registered under the given id."""

    pass


# Error messages safe to expose to clients
SAFE_ERROR_MESSAGES = {
    "ConfigError": "Configuration error. Please contact support.",
    "ProjectError": "The conversation project is invalid.",
    "GraphResolutionError": "The conversation cannot continue. Please start a new session.",
    "ExternalQueryError": "A data lookup failed. Please try again.",
    "SessionNotFoundError": "Session not found.",
    "SessionExistsError": "Session already exists.",
    "SessionClosedError": "Session is closed. Please start a new session.",
    "SessionError": "Session error. Please start a new session.",
}

DEFAULT_ERROR_MESSAGE = "An internal error occurred. Please try again later."


def get_safe_error_message(exception: Exception) -> str:
    """Get client-safe error message for exception type."""
    return SAFE_ERROR_MESSAGES.get(type(exception).__name__, DEFAULT_ERROR_MESSAGE)
