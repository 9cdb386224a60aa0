import logging
import time
from typing import AsyncGenerator

import httpx

from chat_client.envelope import decode_completion, decode_model_list, encode_request
from chat_client.errors import IncompleteStreamError
from chat_client.metrics import observe_request, record_frame
from chat_client.schemas.chat import (
    ChatCompletionChunk,
    ChatCompletionObject,
    ChatRequest,
)
from chat_client.schemas.models import ListModelsResponse
from chat_client.streaming.frames import aiter_chunks
from chat_client.transport.base import (
    CHAT_COMPLETIONS_PATH,
    MODELS_PATH,
    BaseChatClient,
)

logger = logging.getLogger("chat_client.transport")


class AsyncChatClient(BaseChatClient):
    """Asynchronous client for the Chat Completions and Models endpoints.

    A fresh `httpx.AsyncClient` is opened per call, so an instance holds no
    connections and can be shared across tasks.
    """

    async def chat(self, request: ChatRequest) -> ChatCompletionObject:
        """Request a complete (non-streamed) chat completion.

        The `stream` flag is forced to False on the body sent.
        """
        body = encode_request(request.model_copy(update={"stream": False}))
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "chat model=%s messages=%d functions=%d has_auth=%s",
                request.model,
                len(request.messages),
                len(request.functions),
                bool(self.api_key),
            )
        start = time.perf_counter()
        outcome = "success"
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout_seconds
            ) as client:
                response = await client.post(
                    CHAT_COMPLETIONS_PATH, headers=self._headers(), json=body
                )
                self._check_status(response, request.model)
                return decode_completion(response.content)
        except Exception:
            outcome = "error"
            raise
        except BaseException:
            outcome = "cancelled"
            raise
        finally:
            observe_request("chat", outcome, time.perf_counter() - start)

    async def chat_stream(
        self, request: ChatRequest
    ) -> AsyncGenerator[ChatCompletionChunk, None]:
        """Stream a chat completion, yielding one chunk per payload frame.

        The generator ends at the `data: [DONE]` sentinel. Malformed frames
        raise `MissingPrefixError` / `InvalidPayloadError` mid-stream, and a
        body that ends without the sentinel raises `IncompleteStreamError`.
        Closing the generator early closes the HTTP response.
        """
        body = encode_request(request.model_copy(update={"stream": True}))
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "chat_stream model=%s messages=%d has_auth=%s",
                request.model,
                len(request.messages),
                bool(self.api_key),
            )
        start = time.perf_counter()
        outcome = "success"
        try:
            # No timeout: a stream may legitimately stay open for minutes
            async with httpx.AsyncClient(base_url=self.base_url, timeout=None) as client:
                async with client.stream(
                    "POST",
                    CHAT_COMPLETIONS_PATH,
                    headers=self._headers(),
                    json=body,
                ) as response:
                    if response.status_code >= 400:
                        await response.aread()
                        self._check_status(response, request.model)
                    async for chunk in aiter_chunks(
                        response.aiter_lines(), decode=self._decode_line
                    ):
                        yield chunk
        except IncompleteStreamError:
            record_frame("error")
            outcome = "error"
            raise
        except Exception:
            outcome = "error"
            raise
        except BaseException:
            # Closed early by the caller (GeneratorExit) or cancelled
            outcome = "cancelled"
            raise
        finally:
            observe_request("chat_stream", outcome, time.perf_counter() - start)

    async def list_models(self) -> ListModelsResponse:
        start = time.perf_counter()
        outcome = "success"
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout_seconds
            ) as client:
                response = await client.get(MODELS_PATH, headers=self._headers())
                self._check_status(response)
                return decode_model_list(response.content)
        except Exception:
            outcome = "error"
            raise
        except BaseException:
            outcome = "cancelled"
            raise
        finally:
            observe_request("list_models", outcome, time.perf_counter() - start)
