"""
Role-tagged message records and templates that render into them.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, field_validator

from .template import BasePromptTemplate, PromptTemplate, coerce_template, unbound_variables
from .values import bind_values

_ROLE_ALIASES = {
    "user": "human",
    "assistant": "ai",
}


class MessageRole(str, Enum):
    """Conversation roles understood by chat-oriented model clients."""

    HUMAN = "human"
    AI = "ai"
    SYSTEM = "system"

    @classmethod
    def parse(cls, value: Union[str, "MessageRole"]) -> "MessageRole":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        try:
            return cls(_ROLE_ALIASES.get(key, key))
        except ValueError:
            allowed = sorted([r.value for r in cls] + list(_ROLE_ALIASES))
            raise ValueError(f"Unknown message role {value!r}. Allowed: {allowed}") from None


class MessageRecord(BaseModel):
    """A single rendered message."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str

    @field_validator("role", mode="before")
    @classmethod
    def _parse_role(cls, value: Any) -> MessageRole:
        return MessageRole.parse(value)


@dataclass(frozen=True)
class MessageTemplate:
    """One role plus the prompt that renders its content."""

    role: MessageRole
    prompt: PromptTemplate

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", MessageRole.parse(self.role))
        object.__setattr__(self, "prompt", coerce_template(self.prompt))

    @property
    def input_variables(self) -> Tuple[str, ...]:
        return self.prompt.input_variables

    def format(self, /, **kwargs: Any) -> MessageRecord:
        return MessageRecord(role=self.role, content=self.prompt.format(**kwargs))

    async def aformat(self, /, **kwargs: Any) -> MessageRecord:
        return MessageRecord(role=self.role, content=await self.prompt.aformat(**kwargs))


MessageLike = Union[MessageTemplate, MessageRecord, Tuple[str, str]]


def _coerce_message(message: MessageLike) -> Union[MessageTemplate, MessageRecord]:
    if isinstance(message, (MessageTemplate, MessageRecord)):
        return message
    if isinstance(message, tuple) and len(message) == 2:
        role, pattern = message
        return MessageTemplate(role=MessageRole.parse(role), prompt=coerce_template(pattern))
    raise TypeError(f"Cannot build a message template from {message!r}")


@dataclass(frozen=True)
class ChatMessageTemplate(BasePromptTemplate):
    """
    A fixed, ordered sequence of message templates.

    Each entry renders to exactly one :class:`MessageRecord`; records given
    directly pass through unchanged.
    """

    messages: Tuple[Union[MessageTemplate, MessageRecord], ...]
    partials: Mapping[str, Any] = field(default_factory=dict)
    input_variables: Tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        messages = tuple(_coerce_message(m) for m in self.messages)
        declared: Dict[str, None] = {}
        for message in messages:
            if isinstance(message, MessageTemplate):
                for name in message.input_variables:
                    declared.setdefault(name, None)
        partials = bind_values(self.partials)
        object.__setattr__(self, "messages", messages)
        object.__setattr__(self, "partials", partials)
        object.__setattr__(self, "input_variables", unbound_variables(declared, partials))

    @classmethod
    def from_messages(
        cls,
        messages: Sequence[MessageLike],
        partial_variables: Optional[Mapping[str, Any]] = None,
    ) -> "ChatMessageTemplate":
        """
        Build from ``(role, pattern)`` pairs, templates or literal records::

            ChatMessageTemplate.from_messages([
                ("human", "{input}"),
                ("ai", "{output}"),
            ])
        """
        return cls(messages=tuple(messages), partials=dict(partial_variables or {}))

    def format_messages(self, /, **kwargs: Any) -> List[MessageRecord]:
        values = self.resolve_variables(**kwargs)
        return [
            m.format(**values) if isinstance(m, MessageTemplate) else m
            for m in self.messages
        ]

    async def aformat_messages(self, /, **kwargs: Any) -> List[MessageRecord]:
        values = await self.aresolve_variables(**kwargs)

        async def _render(message):
            if isinstance(message, MessageTemplate):
                return await message.aformat(**values)
            return message

        return list(await asyncio.gather(*(_render(m) for m in self.messages)))


def get_buffer_string(
    messages: Sequence[MessageRecord], human_prefix: str = "Human", ai_prefix: str = "AI"
) -> str:
    """Flatten records into ``Role: content`` lines."""
    prefixes = {
        MessageRole.HUMAN: human_prefix,
        MessageRole.AI: ai_prefix,
        MessageRole.SYSTEM: "System",
    }
    return "\n".join(f"{prefixes[m.role]}: {m.content}" for m in messages)
