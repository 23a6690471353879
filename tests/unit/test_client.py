"""
Tests for JlamaChatClient, the consumer-facing API.
"""

import asyncio
import json
from typing import Any

import httpx
import pytest
from jlama_chat import (
    CancellationError,
    CancellationToken,
    ClientConfig,
    DecodeError,
    JlamaChatClient,
    TrailingFragmentPolicy,
    TransportError,
    new_session_id,
)
from pytest_httpx import HTTPXMock, IteratorStream

from tests.conftest import TEST_BASE_URL

CHAT_URL = f"{TEST_BASE_URL}/chat/completions"


def _chunk(word: str, index: int) -> bytes:
    payload = {"id": "s", "choices": [{"index": index, "delta": {"content": word}}]}
    return f"data:{json.dumps(payload)}\n\n".encode()


STOP_CHUNK = (
    b'data:{"id":"s","choices":[{"finish_reason":"stop","delta":{"content":""}}]}\n\n'
)


@pytest.mark.asyncio
async def test_stream_chat_delivers_each_message(
    httpx_mock: HTTPXMock, client_config: ClientConfig, session_id: str
) -> None:
    body = _chunk("Hello", 0) + _chunk(" world", 1) + STOP_CHUNK
    httpx_mock.add_response(
        url=CHAT_URL,
        method="POST",
        stream=IteratorStream([body[:17], body[17:40], body[40:]]),
    )

    received: list[Any] = []
    async with JlamaChatClient(client_config) as client:
        count = await client.stream_chat(
            "Say hello", session_id, CancellationToken(), received.append
        )

    assert count == 3
    assert [m["choices"][0]["delta"]["content"] for m in received] == [
        "Hello",
        " world",
        "",
    ]


@pytest.mark.asyncio
async def test_complete_text_concatenates_words(
    httpx_mock: HTTPXMock, client_config: ClientConfig, session_id: str
) -> None:
    body = _chunk("The", 0) + _chunk(" answer", 1) + _chunk(" is 42", 2) + STOP_CHUNK
    httpx_mock.add_response(
        url=CHAT_URL,
        method="POST",
        stream=IteratorStream([body[i : i + 7] for i in range(0, len(body), 7)]),
    )

    async with JlamaChatClient(client_config) as client:
        text = await client.complete_text("What is the answer?", session_id)

    assert text == "The answer is 42"


@pytest.mark.asyncio
async def test_iter_chat_yields_messages(
    httpx_mock: HTTPXMock, client_config: ClientConfig, session_id: str
) -> None:
    httpx_mock.add_response(
        url=CHAT_URL,
        method="POST",
        stream=IteratorStream([b'{"n":1}\n{"n"', b":2}\n", b'{"n":3}']),
    )

    async with JlamaChatClient(client_config) as client:
        messages = [m async for m in client.iter_chat("count", session_id)]

    assert messages == [{"n": 1}, {"n": 2}, {"n": 3}]


@pytest.mark.asyncio
async def test_malformed_line_aborts_stream_chat(
    httpx_mock: HTTPXMock, client_config: ClientConfig, session_id: str
) -> None:
    httpx_mock.add_response(
        url=CHAT_URL,
        method="POST",
        stream=IteratorStream([b'{"a":1}\nnot-json\n{"b":2}\n']),
    )

    received: list[Any] = []
    async with JlamaChatClient(client_config) as client:
        with pytest.raises(DecodeError):
            await client.stream_chat("hi", session_id, None, received.append)

    assert received == [{"a": 1}]


@pytest.mark.asyncio
async def test_drop_policy_from_config(httpx_mock: HTTPXMock, session_id: str) -> None:
    config = ClientConfig(
        base_url=TEST_BASE_URL,
        trailing_fragment_policy=TrailingFragmentPolicy.DROP,
    )
    httpx_mock.add_response(
        url=CHAT_URL, method="POST", stream=IteratorStream([b'{"a":1}\n{"trunc'])
    )

    received: list[Any] = []
    async with JlamaChatClient(config) as client:
        assert await client.stream_chat("hi", session_id, None, received.append) == 1

    assert received == [{"a": 1}]


@pytest.mark.asyncio
async def test_transport_error_surfaces(
    httpx_mock: HTTPXMock, client_config: ClientConfig, session_id: str
) -> None:
    httpx_mock.add_response(url=CHAT_URL, method="POST", status_code=502)

    received: list[Any] = []
    async with JlamaChatClient(client_config) as client:
        with pytest.raises(TransportError) as exc_info:
            await client.stream_chat("hi", session_id, None, received.append)

    assert exc_info.value.status_code == 502
    assert received == []


@pytest.mark.asyncio
async def test_cancel_mid_stream_stops_delivery(
    client_config: ClientConfig, session_id: str
) -> None:
    first_delivered = asyncio.Event()

    class StalledBody(httpx.AsyncByteStream):
        async def __aiter__(self):
            yield b'{"a":1}\n'
            await asyncio.sleep(30)
            yield b'{"b":2}\n'

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, stream=StalledBody())

    received: list[Any] = []

    def on_message(message: Any) -> None:
        received.append(message)
        first_delivered.set()

    token = CancellationToken()
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    async with JlamaChatClient(client_config, client=http_client) as client:
        task = asyncio.create_task(
            client.stream_chat("hi", session_id, token, on_message)
        )
        await asyncio.wait_for(first_delivered.wait(), timeout=5)
        token.cancel()

        with pytest.raises(CancellationError):
            await asyncio.wait_for(task, timeout=5)

    # A supplied client stays open for its owner.
    assert not http_client.is_closed
    await http_client.aclose()
    assert received == [{"a": 1}]


def test_new_session_id_is_unique_uuid() -> None:
    first, second = new_session_id(), new_session_id()
    assert first != second
    assert len(first) == 36 and first.count("-") == 4
