from __future__ import annotations

import uuid
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Literal

from pydantic import ConfigDict, Field, field_validator

from jlama_chat.core.interfaces.model_bases import DomainModel

JSON_CONTENT_TYPE = "application/json"


class ValueObject(DomainModel):
    """Base class for value objects.

    Value objects are immutable and compared by their values,
    not their identities.
    """

    model_config = ConfigDict(frozen=True)


class ChatMessage(ValueObject):
    """
    A chat message in a conversation.
    """

    role: str = "user"
    content: str

    def to_dict(self) -> dict[str, Any]:
        """Convert the message to a dictionary."""
        return {"role": self.role, "content": self.content}


class ChatCompletionRequest(ValueObject):
    """
    The chat envelope posted to the completions endpoint.
    """

    model: str
    messages: tuple[ChatMessage, ...]
    stream: bool = True

    @field_validator("messages", mode="before")
    @classmethod
    def validate_messages(cls, v: Any) -> tuple[ChatMessage, ...]:
        """Validate and convert messages."""
        if not v:
            raise ValueError("At least one message is required")
        return tuple(m if isinstance(m, ChatMessage) else ChatMessage(**m) for m in v)

    @classmethod
    def for_user_input(
        cls, text: str, model: str, *, stream: bool = True
    ) -> ChatCompletionRequest:
        """Wrap a single piece of user input into a chat envelope."""
        return cls(model=model, messages=(ChatMessage(role="user", content=text),), stream=stream)

    def to_payload(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [m.to_dict() for m in self.messages],
            "stream": self.stream,
        }


class OutboundRequest(ValueObject):
    """A fully-resolved request, immutable once built."""

    target_path: str
    method: Literal["POST"] = "POST"
    headers: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    body: ChatCompletionRequest

    @field_validator("headers")
    @classmethod
    def freeze_headers(cls, v: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(v))

    @classmethod
    def for_chat(
        cls,
        target_path: str,
        body: ChatCompletionRequest,
        session_header: str,
        session_id: str,
    ) -> OutboundRequest:
        return cls(
            target_path=target_path,
            headers={session_header: session_id, "Content-Type": JSON_CONTENT_TYPE},
            body=body,
        )


def new_session_id() -> str:
    """Return a fresh session identifier; the server only accepts UUIDs."""
    return str(uuid.uuid4())
