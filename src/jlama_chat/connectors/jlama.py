from __future__ import annotations

import contextlib
import logging
import types
from collections.abc import AsyncGenerator

import httpx

from jlama_chat.core.common.exceptions import TransportError
from jlama_chat.core.common.logging import redact
from jlama_chat.core.config.client_config import ClientConfig
from jlama_chat.core.domain.cancellation import CancellationToken
from jlama_chat.core.domain.chat import ChatCompletionRequest, OutboundRequest

logger = logging.getLogger(__name__)


class ChatResponseStream:
    """The unread body of a streaming chat response.

    Yields raw byte chunks in arrival order. The stream can be iterated once;
    closing it releases the underlying connection.
    """

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    @property
    def closed(self) -> bool:
        return self._response.is_closed

    def __aiter__(self) -> AsyncGenerator[bytes, None]:
        return self._iter_chunks()

    async def _iter_chunks(self) -> AsyncGenerator[bytes, None]:
        try:
            async for chunk in self._response.aiter_bytes():
                if chunk:
                    yield chunk
        except (httpx.StreamError, httpx.TransportError) as exc:
            raise TransportError(
                message=f"Stream interrupted ({exc})",
                status_code=self._response.status_code,
            ) from exc

    async def aclose(self) -> None:
        await self._response.aclose()

    async def __aenter__(self) -> ChatResponseStream:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        await self.aclose()


class JlamaConnector:
    """Issues streaming chat requests against a Jlama server."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: ClientConfig | None = None,
    ) -> None:
        self.client = client
        self.config = config if config is not None else ClientConfig()

    def url_for(self, target_path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}{target_path}"

    def build_request(self, payload_text: str, session_id: str) -> OutboundRequest:
        body = ChatCompletionRequest.for_user_input(payload_text, self.config.model)
        return OutboundRequest.for_chat(
            self.config.chat_path, body, self.config.session_header, session_id
        )

    async def issue(
        self,
        payload_text: str,
        session_id: str,
        cancellation_token: CancellationToken | None = None,
    ) -> ChatResponseStream:
        """Send the chat request and return once the response headers arrive.

        Raises:
            TransportError: the request could not be sent or the server
                answered with a non-success status.
            CancellationError: the token was cancelled before or while the
                request was in flight.
        """
        outbound = self.build_request(payload_text, session_id)
        url = self.url_for(outbound.target_path)
        request = self.client.build_request(
            outbound.method,
            url,
            json=outbound.body.to_payload(),
            headers=dict(outbound.headers),
        )

        logger.info("Issuing chat request to %s (session %s)", url, redact(session_id))

        scope = (
            cancellation_token.scope()
            if cancellation_token is not None
            else contextlib.nullcontext()
        )
        try:
            async with scope:
                response = await self.client.send(request, stream=True)
        except httpx.RequestError as exc:  # Normalize network failures
            raise TransportError(
                message=f"Could not connect to backend ({exc})"
            ) from exc

        if response.status_code >= 400:
            await self._raise_for_status(response)

        return ChatResponseStream(response)

    async def _raise_for_status(self, response: httpx.Response) -> None:
        try:
            body = (await response.aread()).decode("utf-8", errors="replace")
        except httpx.HTTPError:
            body = ""
        finally:
            await response.aclose()

        logger.warning(
            "Chat request to %s failed with status %d",
            response.request.url,
            response.status_code,
        )
        raise TransportError(
            message=f"Backend returned status {response.status_code}",
            details={"body": body},
            status_code=response.status_code,
        )
