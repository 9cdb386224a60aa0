"""
Chat completion schemas
-----------------------

Request and response records for the Chat Completions API. Every record is
a frozen pydantic model, so values can be shared freely between callers.

Wire rules that apply to every record here:
- Optional fields default to `None`. On the response side a missing key and
  an explicit `null` both decode to `None`.
- `Message` is used both for complete messages and for streamed deltas; all
  of its fields are independently optional.
- `FunctionCall.arguments` is kept as the raw string the model produced. It
  is usually JSON but is never parsed or validated here.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeInt,
    RootModel,
    ValidationError,
    field_validator,
)

# Response counters and timestamps: a JSON string or bool is a type mismatch,
# not something to coerce.
UnsignedInt = Annotated[int, Field(strict=True, ge=0)]


class FunctionCall(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    # Passed through verbatim; the model may emit invalid JSON here.
    arguments: str = ""


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Optional[str] = None
    content: Optional[str] = None
    function_call: Optional[FunctionCall] = None


class FunctionSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    # JSON Schema supplied by the caller, opaque to this package
    parameters: Any


class FunctionCallMode(str, Enum):
    NONE = "none"
    AUTO = "auto"


class NamedFunction(BaseModel):
    """Forces the model to call the function with this name."""

    model_config = ConfigDict(frozen=True)

    name: str


# "none" and "auto" go on the wire as bare strings, a named function as
# {"name": ...}. The remote service expects exactly this asymmetry.
FunctionCallDirective = Union[FunctionCallMode, NamedFunction]


class SingleSequence(RootModel[str]):
    model_config = ConfigDict(frozen=True)


class MultipleSequences(RootModel[List[str]]):
    model_config = ConfigDict(frozen=True)


StopSpec = Union[SingleSequence, MultipleSequences]

# Candidates are tried in this order and the first success wins. Valid inputs
# match exactly one candidate; the order only shapes the error on failure.
STOP_CANDIDATES = (SingleSequence, MultipleSequences)


def parse_stop(value: Any) -> StopSpec:
    """Decode a stop value by trial: a string first, then a list of strings."""
    if isinstance(value, STOP_CANDIDATES):
        return value
    for candidate in STOP_CANDIDATES:
        try:
            return candidate.model_validate(value)
        except ValidationError:
            continue
    raise ValueError("stop must be a string or a list of strings")


class ChatRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    model: str
    messages: List[Message]
    functions: List[FunctionSpec] = Field(default_factory=list)
    function_call: Optional[FunctionCallDirective] = None
    # Optional sampling parameters, each omitted from the wire when None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    n: Optional[NonNegativeInt] = None
    stream: Optional[bool] = None
    stop: Optional[StopSpec] = None
    max_tokens: Optional[NonNegativeInt] = None
    presence_penalty: Optional[float] = None
    frequency_penalty: Optional[float] = None
    # Token id (as a string) -> bias between -100 and 100
    logit_bias: Optional[Dict[str, float]] = None
    user: Optional[str] = None

    @field_validator("stop", mode="before")
    @classmethod
    def _decode_stop(cls, value: Any) -> Any:
        if value is None:
            return value
        return parse_stop(value)


class Usage(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt_tokens: UnsignedInt = 0
    completion_tokens: UnsignedInt = 0
    # Not checked against the sum of the other two
    total_tokens: UnsignedInt = 0


class Choice(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: UnsignedInt
    message: Message
    # Usually "stop", "length" or "function_call"; kept open
    finish_reason: Optional[str] = None


class ChatCompletionObject(BaseModel):
    """A complete, non-streamed chat completion."""

    model_config = ConfigDict(frozen=True)

    id: str
    object: str
    created: UnsignedInt
    model: str
    choices: List[Choice]
    # Some compatible servers omit usage; counters default to zero.
    usage: Usage = Field(default_factory=Usage)

    @field_validator("usage", mode="before")
    @classmethod
    def _default_usage(cls, value: Any) -> Any:
        if value is None:
            return Usage()
        return value


class ChunkChoice(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: UnsignedInt
    delta: Message
    # None on intermediate chunks, set on the last chunk for this index
    finish_reason: Optional[str] = None


class ChatCompletionChunk(BaseModel):
    """One streamed update. Chunks are independent; merging is up to the caller."""

    model_config = ConfigDict(frozen=True)

    id: str
    object: str
    created: UnsignedInt
    model: str
    choices: List[ChunkChoice]
