"""
Shared transport plumbing
-------------------------

`BaseChatClient` holds what the blocking and async clients have in common:
settings resolution, request headers, status-code mapping, and the
frame decoder wrapped with metrics. It performs no I/O itself.

Status mapping:
- 401 -> UnauthorizedError
- 403 -> ForbiddenError
- 429 -> RateLimitError (with Retry-After when the header parses)
- 404 whose error body names the requested model -> ModelNotFoundError
- any other failure -> `response.raise_for_status()`, so the httpx
  exception reaches the caller unchanged

Only one attempt is ever made; nothing is retried.
"""

import logging
from typing import Any, Dict, Optional

from chat_client.config import ClientSettings
from chat_client.errors import (
    DecodeError,
    ForbiddenError,
    ModelNotFoundError,
    RateLimitError,
    UnauthorizedError,
)
from chat_client.metrics import record_frame
from chat_client.schemas.chat import ChatCompletionChunk
from chat_client.streaming.frames import decode_frame

CHAT_COMPLETIONS_PATH = "/chat/completions"
MODELS_PATH = "/models"

logger = logging.getLogger("chat_client.transport")


def _error_message(response: Any) -> str:
    try:
        err = response.json()
    except ValueError:
        return ""
    if not isinstance(err, dict):
        return ""
    error = err.get("error") or err.get("message") or ""
    # OpenAI nests the message: {"error": {"message": ..., "code": ...}}
    if isinstance(error, dict):
        return str(error.get("message") or error.get("code") or "")
    return str(error)


class BaseChatClient:
    """Settings and helpers common to `ChatClient` and `AsyncChatClient`.

    Attributes:
        api_key: Bearer token sent in the Authorization header, if any.
        org_id: Optional organization id sent as `OpenAI-Organization`.
        base_url: API root, e.g. "https://api.openai.com/v1".
        timeout_seconds: Timeout for non-streaming calls. Streams have none.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        org_id: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        settings: Optional[ClientSettings] = None,
    ) -> None:
        settings = settings or ClientSettings.from_env()
        self.api_key = api_key or settings.api_key
        self.org_id = org_id or settings.org_id
        self.base_url = (base_url or settings.base_url).rstrip("/")
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.timeout_seconds
        )

    def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        if self.org_id:
            headers["OpenAI-Organization"] = self.org_id
        return headers

    def _check_status(self, response: Any, model: Optional[str] = None) -> None:
        """Raise for a failed response. The body must already be read."""
        status = response.status_code
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("response status=%s model=%s", status, model or "-")
        if status == 401:
            raise UnauthorizedError(_error_message(response) or "Unauthorized", 401)
        if status == 403:
            raise ForbiddenError(_error_message(response) or "Forbidden", 403)
        if status == 429:
            try:
                retry_after = int(response.headers.get("Retry-After"))
            except (TypeError, ValueError):
                retry_after = None
            raise RateLimitError(
                _error_message(response) or "Rate Limited",
                retry_after_seconds=retry_after,
            )
        # Only a 404 that names the requested model is reported as a missing
        # model, to avoid conflating it with a wrong base URL.
        if status == 404 and model:
            message = _error_message(response)
            lower_msg = message.lower()
            if model.lower() in lower_msg and (
                "model" in lower_msg or "not found" in lower_msg
            ):
                raise ModelNotFoundError(message, 404)
        response.raise_for_status()

    @staticmethod
    def _decode_line(line: str) -> Optional[ChatCompletionChunk]:
        try:
            chunk = decode_frame(line)
        except DecodeError:
            record_frame("error")
            raise
        record_frame("done" if chunk is None else "payload")
        return chunk
