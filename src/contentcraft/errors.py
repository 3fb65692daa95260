"""Exception hierarchy shared by the pipeline, the panel and the HTTP layer."""

from __future__ import annotations

GENERIC_FAILURE_MESSAGE = "Analysis failed. Please try again."

INCOMPLETE_CONTENT_MESSAGE = (
    "I'm sorry, but the content provided is incomplete. Please provide more "
    "information or the full content to proceed with the analysis"
)


class ContentCraftError(Exception):
    """Base class for all application errors."""

    user_message = GENERIC_FAILURE_MESSAGE


class UpstreamError(ContentCraftError):
    """A completion or search provider call failed."""


class ContentIncompleteError(ContentCraftError):
    """The model reply could not be parsed into the expected JSON shape."""

    user_message = INCOMPLETE_CONTENT_MESSAGE


class AuthRequiredError(ContentCraftError):
    """No usable session; the caller must log in again."""

    user_message = "Please log in to continue."


class BackendError(ContentCraftError):
    """The document store or account service rejected a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
