"""Streaming line-delimited JSON client for Jlama chat completions."""

from jlama_chat.client import JlamaChatClient
from jlama_chat.connectors.jlama import ChatResponseStream, JlamaConnector
from jlama_chat.core.common.exceptions import (
    CancellationError,
    ConfigurationError,
    DecodeError,
    JlamaClientError,
    TransportError,
)
from jlama_chat.core.config.client_config import (
    ClientConfig,
    TrailingFragmentPolicy,
    load_config,
)
from jlama_chat.core.domain.cancellation import CancellationToken
from jlama_chat.core.domain.chat import new_session_id
from jlama_chat.core.domain.responses import delta_content
from jlama_chat.core.services.stream_decoder import StreamLineDecoder, decode_stream

__all__ = [
    "CancellationError",
    "CancellationToken",
    "ChatResponseStream",
    "ClientConfig",
    "ConfigurationError",
    "DecodeError",
    "JlamaChatClient",
    "JlamaClientError",
    "JlamaConnector",
    "StreamLineDecoder",
    "TrailingFragmentPolicy",
    "TransportError",
    "decode_stream",
    "delta_content",
    "load_config",
    "new_session_id",
]
