from __future__ import annotations

from typing import Any


def delta_content(message: Any) -> str:
    """Return the streamed text carried by one decoded chat chunk.

    Understands the OpenAI-compatible ``choices[0].delta.content`` shape the
    server emits (and ``choices[0].message.content`` for a non-streamed
    reply). Anything else yields an empty string; the message is not
    validated.
    """
    if not isinstance(message, dict):
        return ""

    choices = message.get("choices", [])
    if choices and isinstance(choices, list):
        choice = choices[0]
        if isinstance(choice, dict):
            if "delta" in choice:
                delta = choice["delta"]
                if isinstance(delta, dict) and isinstance(delta.get("content"), str):
                    return delta["content"]
            elif "message" in choice:
                msg = choice["message"]
                if isinstance(msg, dict) and isinstance(msg.get("content"), str):
                    return msg["content"]
    return ""


def finish_reason(message: Any) -> str | None:
    """Return ``choices[0].finish_reason`` when present."""
    if not isinstance(message, dict):
        return None
    choices = message.get("choices")
    if choices and isinstance(choices, list) and isinstance(choices[0], dict):
        reason = choices[0].get("finish_reason")
        return reason if isinstance(reason, str) else None
    return None
