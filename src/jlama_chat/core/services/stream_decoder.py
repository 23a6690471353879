"""
Line-delimited JSON decoding over a chunked byte stream.

Each complete line of the response body is one JSON message, optionally
tagged with an event-stream marker (``data:``). Messages are handed out in
arrival order as soon as their terminating newline is received; whatever is
left without a newline when the stream ends is flushed as a final message.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncGenerator, AsyncIterable, AsyncIterator, Callable
from typing import Any

from jlama_chat.core.common.exceptions import DecodeError
from jlama_chat.core.config.client_config import (
    DEFAULT_EVENT_PREFIX,
    ClientConfig,
    TrailingFragmentPolicy,
)
from jlama_chat.core.domain.cancellation import CancellationToken
from jlama_chat.core.domain.line_buffer import LineBuffer

logger = logging.getLogger(__name__)

MessageHandler = Callable[[Any], None]

_END_OF_STREAM = object()
_DROPPED = object()


class StreamLineDecoder:
    """Turns a byte stream into a sequence of decoded JSON messages."""

    def __init__(
        self,
        event_prefix: str = DEFAULT_EVENT_PREFIX,
        encoding: str = "utf-8",
        trailing_fragment_policy: TrailingFragmentPolicy = TrailingFragmentPolicy.RAISE,
    ) -> None:
        self.event_prefix = event_prefix
        self.encoding = encoding
        self.trailing_fragment_policy = TrailingFragmentPolicy(trailing_fragment_policy)

    @classmethod
    def from_config(cls, config: ClientConfig) -> StreamLineDecoder:
        return cls(
            event_prefix=config.event_prefix,
            encoding=config.encoding,
            trailing_fragment_policy=config.trailing_fragment_policy,
        )

    def parse_line(self, line: str) -> Any:
        """Parse one complete line, stripping the event prefix if present."""
        text = line
        if self.event_prefix and text.startswith(self.event_prefix):
            text = text[len(self.event_prefix) :]
        return _loads(text, line)

    async def iter_messages(
        self,
        stream: AsyncIterable[bytes],
        cancellation_token: CancellationToken | None = None,
    ) -> AsyncGenerator[Any, None]:
        """Yield each decoded message as soon as its line is complete.

        The iterator is lazy and cannot be restarted; it ends when the stream
        ends. Parse failures raise ``DecodeError`` and end the iteration;
        messages already yielded stay valid. Errors raised by the stream
        propagate unchanged and the buffered tail is discarded.
        """
        buffer = LineBuffer(self.encoding)
        chunks = stream.__aiter__()

        while True:
            chunk = await _read_chunk(chunks, cancellation_token)
            if chunk is _END_OF_STREAM:
                break

            for line in buffer.feed(chunk):
                if not line.strip():
                    continue
                message = self.parse_line(line)
                if cancellation_token is not None:
                    cancellation_token.raise_if_cancelled()
                yield message

        message = self._flush_remainder(buffer)
        if message is not _DROPPED:
            if cancellation_token is not None:
                cancellation_token.raise_if_cancelled()
            yield message

    async def decode(
        self,
        stream: AsyncIterable[bytes],
        on_message: MessageHandler,
        cancellation_token: CancellationToken | None = None,
    ) -> int:
        """Deliver every decoded message to ``on_message`` and return the count.

        The handler runs synchronously between chunk reads, so a slow handler
        delays consumption of the stream.
        """
        delivered = 0
        messages = self.iter_messages(stream, cancellation_token)
        try:
            async for message in messages:
                on_message(message)
                delivered += 1
        finally:
            await messages.aclose()

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Stream finished; delivered %d message(s)", delivered)
        return delivered

    def _flush_remainder(self, buffer: LineBuffer) -> Any:
        # The flushed remainder is parsed as-is, without prefix stripping
        remainder = buffer.flush()
        if not remainder.strip():
            return _DROPPED
        try:
            return _loads(remainder, remainder)
        except DecodeError:
            if self.trailing_fragment_policy is TrailingFragmentPolicy.DROP:
                logger.warning("Dropping undecodable trailing fragment at end of stream")
                return _DROPPED
            raise


async def _read_chunk(
    chunks: AsyncIterator[bytes], cancellation_token: CancellationToken | None
) -> Any:
    if cancellation_token is None:
        try:
            return await chunks.__anext__()
        except StopAsyncIteration:
            return _END_OF_STREAM

    async with cancellation_token.scope():
        try:
            return await chunks.__anext__()
        except StopAsyncIteration:
            return _END_OF_STREAM


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON
    raise ValueError(f"{name} is not a valid JSON value")


def _loads(text: str, line: str) -> Any:
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError as exc:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Undecodable stream line: %r", line[:200])
        reason = exc.msg if isinstance(exc, json.JSONDecodeError) else str(exc)
        raise DecodeError(message=f"Invalid JSON in stream line: {reason}", line=line) from exc


async def decode_stream(
    stream: AsyncIterable[bytes],
    on_message: MessageHandler,
    cancellation_token: CancellationToken | None = None,
    *,
    trailing_fragment_policy: TrailingFragmentPolicy = TrailingFragmentPolicy.RAISE,
) -> int:
    """Decode ``stream`` with default framing, calling ``on_message`` per message."""
    decoder = StreamLineDecoder(trailing_fragment_policy=trailing_fragment_policy)
    return await decoder.decode(stream, on_message, cancellation_token)
