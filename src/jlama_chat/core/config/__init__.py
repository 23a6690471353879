# Configuration package

from jlama_chat.core.config.client_config import (
    ClientConfig,
    LoggingConfig,
    TrailingFragmentPolicy,
    load_config,
)

__all__ = [
    "ClientConfig",
    "LoggingConfig",
    "TrailingFragmentPolicy",
    "load_config",
]
