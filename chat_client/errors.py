from typing import Any, Optional

from pydantic import ValidationError


class ChatClientError(Exception):
    """Base class for every error raised intentionally by chat_client."""


class DecodeError(ChatClientError):
    """A frame or response body could not be turned into a typed value."""


class MissingPrefixError(DecodeError):
    """Raised when a streamed frame does not begin with `data:`.

    This is a protocol violation, not an empty or ignorable frame.
    """

    def __init__(self, frame: str):
        super().__init__("Expected frame to start with 'data:'")
        self.frame = frame


class InvalidPayloadError(DecodeError):
    """Raised when a payload is not JSON or does not match the expected shape.

    The underlying pydantic `ValidationError` is kept on `cause` (and chained
    as `__cause__`) so callers can inspect the exact location of the mismatch.
    """

    def __init__(self, payload: Any, cause: ValidationError):
        super().__init__(f"Invalid payload: {cause}")
        self.payload = payload
        self.cause = cause


class IncompleteStreamError(DecodeError):
    """Raised when the frames run out before the `data: [DONE]` sentinel.

    A dropped connection must not look like a finished stream.
    """

    def __init__(self, chunks_received: int = 0):
        super().__init__("Stream ended before 'data: [DONE]'")
        self.chunks_received = chunks_received


class EncodeError(ChatClientError):
    """Raised when a request value cannot be serialized to the wire body."""


class APIError(ChatClientError):
    """Base class for HTTP status failures the client maps explicitly.

    Anything not mapped here surfaces as the transport's own exception.
    """

    def __init__(self, message: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UnauthorizedError(APIError):
    """The API rejected the credentials (401)."""


class ForbiddenError(APIError):
    """The API forbids access to the resource (403)."""


class RateLimitError(APIError):
    """The API rate limited the request (429).

    Optionally carries a Retry-After value (seconds).
    """

    def __init__(
        self,
        message: str = "",
        status_code: Optional[int] = 429,
        retry_after_seconds: Optional[int] = None,
    ):
        super().__init__(message, status_code=status_code)
        self.retry_after_seconds = retry_after_seconds


class ModelNotFoundError(APIError):
    """The requested model is not available (404 naming the model)."""
