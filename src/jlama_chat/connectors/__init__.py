from .jlama import ChatResponseStream, JlamaConnector

__all__ = ["ChatResponseStream", "JlamaConnector"]
