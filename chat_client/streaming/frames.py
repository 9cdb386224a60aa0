"""
Streamed frame decoding
-----------------------

With `stream=True` the API answers with server-sent-event style lines:

    data: {"id": "chatcmpl-123", "object": "chat.completion.chunk", ...}

    data: [DONE]

`decode_frame` classifies one such frame:

- no `data:` prefix (after trimming)  -> `MissingPrefixError`
- `data: [DONE]`                      -> `None`, the end of the stream
- `data: <ChatCompletionChunk JSON>`  -> the decoded chunk
- `data: <anything else>`             -> `InvalidPayloadError`

The function keeps no state between calls, so it can serve any number of
streams at once. Frames must still be fed in the order they were received,
because deltas only make sense in that order; nothing here reorders, buffers
or merges chunks.

`iter_chunks` / `aiter_chunks` are the consumption loops around it: they skip
the blank separator lines between events, decode every other line, and stop
at the sentinel. Running out of lines before the sentinel raises
`IncompleteStreamError`, so a dropped connection is never mistaken for a
finished stream.
"""

from typing import AsyncIterable, AsyncIterator, Callable, Iterable, Iterator, Optional

from chat_client.envelope import decode_payload
from chat_client.errors import IncompleteStreamError, MissingPrefixError
from chat_client.schemas.chat import ChatCompletionChunk

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"

FrameDecoder = Callable[[str], Optional[ChatCompletionChunk]]


def decode_frame(raw: str) -> Optional[ChatCompletionChunk]:
    """Decode one streamed frame.

    Returns the chunk for a payload frame and `None` for the `[DONE]`
    sentinel. Raises `MissingPrefixError` or `InvalidPayloadError` otherwise.
    """
    frame = raw.strip()
    if not frame.startswith(DATA_PREFIX):
        raise MissingPrefixError(raw)
    # The prefix may be followed by any amount of whitespace
    payload = frame[len(DATA_PREFIX):].strip()
    if payload == DONE_SENTINEL:
        return None
    return decode_payload(ChatCompletionChunk, payload)


def iter_chunks(
    lines: Iterable[str], decode: FrameDecoder = decode_frame
) -> Iterator[ChatCompletionChunk]:
    received = 0
    for line in lines:
        # Blank lines separate events; they are not frames
        if not line.strip():
            continue
        chunk = decode(line)
        if chunk is None:
            return
        received += 1
        yield chunk
    raise IncompleteStreamError(received)


async def aiter_chunks(
    lines: AsyncIterable[str], decode: FrameDecoder = decode_frame
) -> AsyncIterator[ChatCompletionChunk]:
    received = 0
    async for line in lines:
        if not line.strip():
            continue
        chunk = decode(line)
        if chunk is None:
            return
        received += 1
        yield chunk
    raise IncompleteStreamError(received)
