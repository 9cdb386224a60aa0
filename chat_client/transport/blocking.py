"""
Blocking client
---------------

Synchronous twin of `AsyncChatClient` for scripts and code that does not run
an event loop. Behaviour is identical: same body encoding, same status
mapping, same frame decoding. `chat_stream` is a plain generator.
"""

import logging
import time
from typing import Iterator

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
from chat_client.streaming.frames import iter_chunks
from chat_client.transport.base import (
    CHAT_COMPLETIONS_PATH,
    MODELS_PATH,
    BaseChatClient,
)

logger = logging.getLogger("chat_client.transport")


class ChatClient(BaseChatClient):
    def chat(self, request: ChatRequest) -> ChatCompletionObject:
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
            with httpx.Client(
                base_url=self.base_url, timeout=self.timeout_seconds
            ) as client:
                response = client.post(
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

    def chat_stream(self, request: ChatRequest) -> Iterator[ChatCompletionChunk]:
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
            with httpx.Client(base_url=self.base_url, timeout=None) as client:
                with client.stream(
                    "POST",
                    CHAT_COMPLETIONS_PATH,
                    headers=self._headers(),
                    json=body,
                ) as response:
                    if response.status_code >= 400:
                        response.read()
                        self._check_status(response, request.model)
                    yield from iter_chunks(
                        response.iter_lines(), decode=self._decode_line
                    )
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

    def list_models(self) -> ListModelsResponse:
        start = time.perf_counter()
        outcome = "success"
        try:
            with httpx.Client(
                base_url=self.base_url, timeout=self.timeout_seconds
            ) as client:
                response = client.get(MODELS_PATH, headers=self._headers())
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
