"""
Non-streamed request/response envelope
--------------------------------------

Turns a `ChatRequest` into the JSON body sent to `/chat/completions`, and
turns complete response bodies back into typed records.

Encoding rules:
- Optional fields that are `None` are left out of the body, never sent as
  `null`.
- `functions` is left out when empty.
- Each message always carries `content`. The API accepts `null` there for
  assistant messages that only hold a function call, and expects the key.

Decoding accepts `str`, `bytes` or an already parsed mapping. Any mismatch
is raised as `InvalidPayloadError` with the pydantic diagnostic attached.
"""

from typing import Any, Dict, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError
from pydantic_core import PydanticSerializationError

from chat_client.errors import EncodeError, InvalidPayloadError
from chat_client.schemas.chat import (
    ChatCompletionObject,
    ChatRequest,
    FunctionSpec,
    Message,
)
from chat_client.schemas.models import ListModelsResponse

ModelT = TypeVar("ModelT", bound=BaseModel)

Body = Union[str, bytes, bytearray, Dict[str, Any]]


def _encode_message(message: Message) -> Dict[str, Any]:
    data = message.model_dump(mode="json", exclude_none=True)
    data.setdefault("content", None)
    return data


def _encode_function(function: FunctionSpec) -> Dict[str, Any]:
    # parameters is dumped without exclude_none so nulls inside the schema
    # survive untouched
    data: Dict[str, Any] = {"name": function.name}
    if function.description is not None:
        data["description"] = function.description
    data["parameters"] = function.model_dump(mode="json", include={"parameters"})[
        "parameters"
    ]
    return data


def encode_request(request: ChatRequest) -> Dict[str, Any]:
    """Build the JSON-ready wire body for a chat completion request."""
    try:
        body: Dict[str, Any] = {
            "model": request.model,
            "messages": [_encode_message(m) for m in request.messages],
        }
        if request.functions:
            body["functions"] = [_encode_function(f) for f in request.functions]
        body.update(
            request.model_dump(
                mode="json",
                exclude_none=True,
                exclude={"model", "messages", "functions"},
            )
        )
    except PydanticSerializationError as exc:
        raise EncodeError(f"Could not encode request: {exc}") from exc
    return body


def decode_payload(model: Type[ModelT], body: Body) -> ModelT:
    """Validate a raw or parsed JSON body against `model`."""
    try:
        if isinstance(body, (str, bytes, bytearray)):
            return model.model_validate_json(body)
        return model.model_validate(body)
    except ValidationError as exc:
        raise InvalidPayloadError(body, exc) from exc


def decode_completion(body: Body) -> ChatCompletionObject:
    return decode_payload(ChatCompletionObject, body)


def decode_model_list(body: Body) -> ListModelsResponse:
    return decode_payload(ListModelsResponse, body)
