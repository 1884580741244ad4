"""Error taxonomy for the chat pipeline.

Each error carries the HTTP status it surfaces as, so the API layer can map
it without knowing about individual failure modes.
"""

from __future__ import annotations


class ChatError(Exception):
    """Base class for errors that fail a chat request."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigurationError(ChatError):
    """A required credential or service endpoint is absent."""

    status_code = 500


class UpstreamError(ChatError):
    """An external dependency returned a non-success status."""

    status_code = 502

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__(message)

    def __str__(self) -> str:
        if self.status is not None:
            return f"{self.status} - {self.message}"
        return self.message


class StorageError(ChatError):
    """The vector store is unreachable or rejected a query."""

    status_code = 503


class ValidationError(ChatError):
    """Malformed or missing request input."""

    status_code = 400


class RateLimitError(ChatError):
    """The client exceeded its request budget."""

    status_code = 429
