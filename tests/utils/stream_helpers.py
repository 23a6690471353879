"""Byte-stream doubles shared by the decoder and client tests."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, Iterable


async def byte_chunks(chunks: Iterable[bytes | str]) -> AsyncGenerator[bytes, None]:
    """Async byte stream yielding the given chunks in order."""
    for chunk in chunks:
        yield chunk.encode("utf-8") if isinstance(chunk, str) else chunk


async def stalled_after(
    chunks: Iterable[bytes | str], release: asyncio.Event | None = None
) -> AsyncGenerator[bytes, None]:
    """Yield ``chunks`` then block until ``release`` is set (forever by default)."""
    async for chunk in byte_chunks(chunks):
        yield chunk
    await (release or asyncio.Event()).wait()


async def failing_after(
    chunks: Iterable[bytes | str], error: BaseException
) -> AsyncGenerator[bytes, None]:
    """Yield ``chunks`` then raise ``error`` as a dropped connection would."""
    async for chunk in byte_chunks(chunks):
        yield chunk
    raise error


def split_at(data: bytes, cuts: Iterable[int]) -> list[bytes]:
    """Split ``data`` at the given offsets (duplicates and order ignored)."""
    points = sorted({c for c in cuts if 0 < c < len(data)})
    pieces: list[bytes] = []
    start = 0
    for point in points:
        pieces.append(data[start:point])
        start = point
    pieces.append(data[start:])
    return pieces
