"""
Consumer-facing client for the Jlama chat completion stream.

Ties the request issuer to the line decoder: a call sends the user's input,
then feeds the response body through the decoder, delivering every decoded
chunk to the caller as it arrives.
"""

from __future__ import annotations

import types
from collections.abc import AsyncGenerator
from typing import Any

import httpx

from jlama_chat.connectors.jlama import JlamaConnector
from jlama_chat.core.common.exceptions import CancellationError, JlamaClientError
from jlama_chat.core.common.logging import get_logger, redact
from jlama_chat.core.config.client_config import ClientConfig
from jlama_chat.core.domain.cancellation import CancellationToken
from jlama_chat.core.domain.responses import delta_content, finish_reason
from jlama_chat.core.services.stream_decoder import MessageHandler, StreamLineDecoder

logger = get_logger(__name__)


class JlamaChatClient:
    """Streams chat completions from a Jlama server.

    The HTTP client is created from ``config`` unless one is supplied, in which
    case the caller keeps ownership of it.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config if config is not None else ClientConfig()
        self._owns_client = client is None
        self.client = (
            client
            if client is not None
            else httpx.AsyncClient(timeout=httpx.Timeout(self.config.timeout_seconds))
        )
        self.connector = JlamaConnector(self.client, self.config)
        self.decoder = StreamLineDecoder.from_config(self.config)

    async def stream_chat(
        self,
        text: str,
        session_id: str,
        cancellation_token: CancellationToken | None,
        on_message: MessageHandler,
    ) -> int:
        """Send ``text`` and call ``on_message`` once per decoded chunk.

        Returns the number of delivered messages when the stream completes.
        Any error ends the call; messages delivered before it stay delivered.
        """
        log = logger.bind(session=redact(session_id))
        try:
            async with await self.connector.issue(
                text, session_id, cancellation_token
            ) as stream:
                delivered = await self.decoder.decode(
                    stream, on_message, cancellation_token
                )
        except CancellationError:
            log.info("chat stream cancelled")
            raise
        except JlamaClientError as e:
            log.warning("chat stream failed", error=e.message, error_type=type(e).__name__)
            raise

        log.info("chat stream completed", messages=delivered)
        return delivered

    async def iter_chat(
        self,
        text: str,
        session_id: str,
        cancellation_token: CancellationToken | None = None,
    ) -> AsyncGenerator[Any, None]:
        """Send ``text`` and yield each decoded chunk as it arrives."""
        async with await self.connector.issue(
            text, session_id, cancellation_token
        ) as stream:
            messages = self.decoder.iter_messages(stream, cancellation_token)
            try:
                async for message in messages:
                    yield message
            finally:
                await messages.aclose()

    async def complete_text(
        self,
        text: str,
        session_id: str,
        cancellation_token: CancellationToken | None = None,
    ) -> str:
        """Send ``text`` and return the concatenated streamed reply."""
        parts: list[str] = []

        def collect(message: Any) -> None:
            parts.append(delta_content(message))
            reason = finish_reason(message)
            if reason is not None:
                logger.debug("chat stream finished", finish_reason=reason)

        await self.stream_chat(text, session_id, cancellation_token, collect)
        return "".join(parts)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> JlamaChatClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        await self.aclose()
