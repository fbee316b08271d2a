"""Conversation messages and the tool-call payload the model emits.

Messages are plain role-tagged text.  Tools are reached through a prompted
JSON payload rather than a provider's native tool API, so every backend
sees the same conversation shape.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

Role = Literal["system", "user", "assistant", "tool"]


class ChatMessage(BaseModel):
    """A single message in the conversation."""

    role: Role
    content: str = ""

    @classmethod
    def system(cls, text: str) -> ChatMessage:
        return cls(role="system", content=text)

    @classmethod
    def user(cls, text: str) -> ChatMessage:
        return cls(role="user", content=text)

    @classmethod
    def assistant(cls, text: str) -> ChatMessage:
        return cls(role="assistant", content=text)

    @classmethod
    def tool(cls, text: str) -> ChatMessage:
        return cls(role="tool", content=text)


class ConversationHistory(BaseModel):
    """An ordered, append-only sequence of messages forming a conversation."""

    messages: list[ChatMessage] = Field(default_factory=list)

    def append(self, message: ChatMessage) -> None:
        self.messages.append(message)

    def clear(self) -> None:
        """Drop everything except a leading system message."""
        if self.messages and self.messages[0].role == "system":
            self.messages = [self.messages[0]]
        else:
            self.messages = []

    @property
    def system_prompt(self) -> str | None:
        """The leading system message's text, if there is one."""
        if self.messages and self.messages[0].role == "system":
            return self.messages[0].content
        return None

    @property
    def last(self) -> ChatMessage | None:
        return self.messages[-1] if self.messages else None

    def __len__(self) -> int:
        return len(self.messages)

    def __iter__(self):  # type: ignore[override]
        return iter(self.messages)


class ToolCall(BaseModel):
    """One tool invocation requested by the model."""

    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class ToolOutcome(BaseModel):
    """What happened when a :class:`ToolCall` ran."""

    name: str
    success: bool
    result: Any = None
    error: str | None = None
