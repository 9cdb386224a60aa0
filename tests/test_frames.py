import asyncio

import pytest

from chat_client.errors import (
    DecodeError,
    IncompleteStreamError,
    InvalidPayloadError,
    MissingPrefixError,
)
from chat_client.schemas.chat import (
    ChatCompletionChunk,
    ChunkChoice,
    FunctionCall,
    Message,
)
from chat_client.streaming.frames import aiter_chunks, decode_frame, iter_chunks

THREE_CHOICE_FRAME = r"""data: {
    "id": "chatcmpl-123",
    "object": "chat.completion.chunk",
    "created": 1677652288,
    "model": "gpt-3.5-turbo",
    "choices": [
        {
            "index": 0,
            "finish_reason": "stop",
            "delta": {"role": "assistant", "content": "You are a helpful assistant."}
        },
        {
            "index": 1,
            "finish_reason": "length",
            "delta": {"role": "assistant", "content": "You are a helpful assistant."}
        },
        {
            "index": 2,
            "finish_reason": "function_call",
            "delta": {
                "role": "assistant",
                "function_call": {
                    "name": "get_weather",
                    "arguments": "{\"loc\": \"Los Angeles\"}"
                }
            }
        }
    ]
}"""


@pytest.mark.parametrize(
    "frame",
    ["", "   ", "\n\n", "{{", "d a t a :", '{"id": "x"}', "event: message", "DATA: [DONE]"],
)
def test_frames_without_prefix_are_rejected(frame):
    with pytest.raises(MissingPrefixError) as excinfo:
        decode_frame(frame)
    assert excinfo.value.frame == frame
    assert isinstance(excinfo.value, DecodeError)


@pytest.mark.parametrize(
    "frame",
    ["data: [DONE]", "data: [DONE]\n\n", "data:[DONE]", "  data:    [DONE]  "],
)
def test_done_sentinel_is_terminal(frame):
    assert decode_frame(frame) is None


@pytest.mark.parametrize(
    "frame",
    [
        "data: not-json",
        "data:",
        "data: {{",
        "data: [DONE]x",
        "data: [1, 2, 3]",
        'data: {"id": "x"}',
        'data: {"id": "x", "object": "", "created": -1, "model": "", "choices": []}',
        # counters are not coerced from strings or booleans
        'data: {"id":"","object":"","created":"0","model":"","choices":[]}',
        'data: {"id": "c", "object": "o", "created": 1, "model": "m", '
        '"choices": [{"index": true, "delta": {}}]}',
        'data: {"id": "c", "object": "o", "created": 1.5, "model": "m", "choices": []}',
    ],
)
def test_prefixed_garbage_is_invalid_payload(frame):
    with pytest.raises(InvalidPayloadError) as excinfo:
        decode_frame(frame)
    # diagnostic from pydantic is kept for debugging
    assert excinfo.value.cause is not None
    assert excinfo.value.__cause__ is excinfo.value.cause


def test_empty_chunk():
    chunk = decode_frame(
        'data: {"id":"","object":"","created":0,"model":"","choices":[]}'
    )
    assert chunk == ChatCompletionChunk(
        id="", object="", created=0, model="", choices=[]
    )


def test_chunk_with_metadata_and_no_choices():
    chunk = decode_frame(
        """data: {
            "id": "chatcmpl-123",
            "object": "chat.completion.chunk",
            "created": 1677652288,
            "model": "gpt-3.5-turbo",
            "choices": []
        }"""
    )
    assert chunk.id == "chatcmpl-123"
    assert chunk.object == "chat.completion.chunk"
    assert chunk.created == 1677652288
    assert chunk.model == "gpt-3.5-turbo"
    assert chunk.choices == []


def test_single_choice_delta():
    chunk = decode_frame(
        'data: {"id": "chatcmpl-123", "object": "chat.completion.chunk", '
        '"created": 1677652288, "model": "gpt-3.5-turbo", "choices": [{"index": 0, '
        '"finish_reason": "stop", "delta": {"role": "system", '
        '"content": "You are a helpful assistant."}}]}'
    )
    assert chunk.choices == [
        ChunkChoice(
            index=0,
            finish_reason="stop",
            delta=Message(role="system", content="You are a helpful assistant."),
        )
    ]
    assert chunk.choices[0].delta.function_call is None


def test_three_choices_keep_order_and_raw_arguments():
    chunk = decode_frame(THREE_CHOICE_FRAME)
    assert [c.index for c in chunk.choices] == [0, 1, 2]
    assert [c.finish_reason for c in chunk.choices] == [
        "stop",
        "length",
        "function_call",
    ]
    call = chunk.choices[2].delta.function_call
    assert call == FunctionCall(name="get_weather", arguments='{"loc": "Los Angeles"}')
    assert chunk.choices[2].delta.content is None


def test_invalid_json_arguments_pass_through():
    frame = (
        'data: {"id": "c", "object": "chat.completion.chunk", "created": 1, '
        '"model": "m", "choices": [{"index": 0, "delta": {"function_call": '
        '{"arguments": "{\\"loc\\": \\"Los"}}}]}'
    )
    chunk = decode_frame(frame)
    delta = chunk.choices[0].delta
    assert delta.role is None
    assert delta.function_call.arguments == '{"loc": "Los'
    assert chunk.choices[0].finish_reason is None


def test_null_finish_reason_is_absent():
    chunk = decode_frame(
        'data: {"id": "c", "object": "o", "created": 1, "model": "m", '
        '"choices": [{"index": 3, "delta": {"content": "hi", "role": null}, '
        '"finish_reason": null}]}'
    )
    assert chunk.choices[0].finish_reason is None
    assert chunk.choices[0].delta == Message(content="hi")


def test_decoding_is_repeatable():
    first = decode_frame(THREE_CHOICE_FRAME)
    decode_frame("data: [DONE]")
    with pytest.raises(DecodeError):
        decode_frame("{{")
    second = decode_frame(THREE_CHOICE_FRAME)
    assert first == second
    assert first is not second


def _frame(content):
    return (
        'data: {"id": "c", "object": "chat.completion.chunk", "created": 1, '
        '"model": "m", "choices": [{"index": 0, "delta": {"content": "%s"}}]}'
        % content
    )


def test_iter_chunks_skips_separators_and_stops_at_done():
    lines = [_frame("hel"), "", _frame("lo"), "\n", "data: [DONE]", _frame("late")]
    chunks = list(iter_chunks(lines))
    assert "".join(c.choices[0].delta.content for c in chunks) == "hello"


def test_iter_chunks_surfaces_decode_errors():
    lines = iter([_frame("a"), "garbage", _frame("b")])
    chunks = iter_chunks(lines)
    assert next(chunks).choices[0].delta.content == "a"
    with pytest.raises(MissingPrefixError):
        next(chunks)


def test_iter_chunks_uses_custom_decoder():
    seen = []

    def _decode(line):
        seen.append(line)
        return decode_frame(line)

    list(iter_chunks([_frame("x"), "data: [DONE]"], decode=_decode))
    assert seen == [_frame("x"), "data: [DONE]"]


@pytest.mark.asyncio
async def test_aiter_chunks_matches_sync_loop():
    async def _lines():
        for line in [_frame("hel"), "", _frame("lo"), "data: [DONE]", _frame("x")]:
            await asyncio.sleep(0)
            yield line

    chunks = [chunk async for chunk in aiter_chunks(_lines())]
    assert [c.choices[0].delta.content for c in chunks] == ["hel", "lo"]


def test_iter_chunks_without_done_is_incomplete():
    chunks = iter_chunks(iter([_frame("a"), ""]))
    assert next(chunks).choices[0].delta.content == "a"
    with pytest.raises(IncompleteStreamError) as excinfo:
        next(chunks)
    assert excinfo.value.chunks_received == 1
    assert isinstance(excinfo.value, DecodeError)


def test_iter_chunks_on_empty_body_is_incomplete():
    with pytest.raises(IncompleteStreamError) as excinfo:
        list(iter_chunks([]))
    assert excinfo.value.chunks_received == 0


@pytest.mark.asyncio
async def test_aiter_chunks_without_done_is_incomplete():
    async def _lines():
        for line in [_frame("a"), ""]:
            await asyncio.sleep(0)
            yield line

    seen = []
    with pytest.raises(IncompleteStreamError) as excinfo:
        async for chunk in aiter_chunks(_lines()):
            seen.append(chunk)
    assert [c.choices[0].delta.content for c in seen] == ["a"]
    assert excinfo.value.chunks_received == 1
