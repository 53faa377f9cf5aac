"""
Few-shot prompt templates.

Both variants take their examples either from a static list or from an
example selector (exactly one of the two), and render every selected example
through ``example_prompt``:

- ``FewShotPromptTemplate`` joins prefix, example fragments and suffix into
  one string.
- ``FewShotChatMessageTemplate`` emits the examples as an ordered list of
  message records. A ``PromptTemplate`` example prompt produces one ``human``
  record per example; a ``ChatMessageTemplate`` produces its full message
  sequence per example.

Example::

    prompt = FewShotPromptTemplate(
        example_prompt=PromptTemplate.from_template("Human: {input}\\nAI: {output}"),
        examples=[{"input": "A?", "output": "a"}, {"input": "B?", "output": "b"}],
        suffix="Human: {question}\\nAI:",
    )
    prompt.format(question="C?")
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..config import settings
from .example_selectors import BaseExampleSelector, Example
from .messages import ChatMessageTemplate, MessageRecord, MessageRole
from .template import BasePromptTemplate, PromptTemplate, coerce_template, unbound_variables
from .values import bind_values


@dataclass(frozen=True)
class StaticExamples:
    """A fixed example list, rendered in full every time."""

    examples: Tuple[Example, ...]

    def select(self, input_variables: Mapping[str, Any]) -> List[Example]:
        return [dict(e) for e in self.examples]

    async def aselect(self, input_variables: Mapping[str, Any]) -> List[Example]:
        return self.select(input_variables)


@dataclass(frozen=True)
class SelectedExamples:
    """Examples chosen per render by a shared, externally owned selector."""

    selector: BaseExampleSelector

    def select(self, input_variables: Mapping[str, Any]) -> List[Example]:
        return self.selector.select_examples(input_variables)

    async def aselect(self, input_variables: Mapping[str, Any]) -> List[Example]:
        return await self.selector.aselect_examples(input_variables)


ExampleSource = Union[StaticExamples, SelectedExamples]


def example_source(
    examples: Optional[Iterable[Mapping[str, str]]],
    example_selector: Optional[BaseExampleSelector],
) -> ExampleSource:
    if examples is not None and example_selector is not None:
        raise ValueError("Only one of 'examples' and 'example_selector' should be provided")
    if example_selector is not None:
        return SelectedExamples(example_selector)
    if examples is not None:
        return StaticExamples(tuple(dict(e) for e in examples))
    raise ValueError("One of 'examples' and 'example_selector' should be provided")


def _ordered_union(*groups: Iterable[str]) -> Tuple[str, ...]:
    names: Dict[str, None] = {}
    for group in groups:
        for name in group:
            names.setdefault(name, None)
    return tuple(names)


@dataclass(frozen=True)
class FewShotPromptTemplate(BasePromptTemplate):
    """
    String-mode few-shot prompt.

    ``input_variables`` is derived: prefix and suffix variables, then any
    ``extra_variables`` (inputs only the example selector consumes), minus
    names bound by ``partial()``.
    """

    example_prompt: PromptTemplate
    examples: Optional[Sequence[Mapping[str, str]]] = None
    example_selector: Optional[BaseExampleSelector] = None
    prefix: Union[PromptTemplate, str] = ""
    suffix: Union[PromptTemplate, str] = ""
    example_separator: Optional[str] = None
    extra_variables: Tuple[str, ...] = ()
    partials: Mapping[str, Any] = field(default_factory=dict)
    source: ExampleSource = field(init=False, repr=False, compare=False)
    input_variables: Tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        prefix = coerce_template(self.prefix)
        suffix = coerce_template(self.suffix)
        separator = (
            settings.example_separator if self.example_separator is None else self.example_separator
        )
        declared = _ordered_union(prefix.input_variables, suffix.input_variables, self.extra_variables)
        partials = bind_values(self.partials)

        object.__setattr__(self, "example_prompt", coerce_template(self.example_prompt))
        object.__setattr__(self, "prefix", prefix)
        object.__setattr__(self, "suffix", suffix)
        object.__setattr__(self, "example_separator", separator)
        object.__setattr__(self, "extra_variables", tuple(self.extra_variables))
        object.__setattr__(self, "source", example_source(self.examples, self.example_selector))
        if self.examples is not None:
            object.__setattr__(self, "examples", self.source.examples)
        object.__setattr__(self, "partials", partials)
        object.__setattr__(self, "input_variables", unbound_variables(declared, partials))

    def _join(self, pieces: Iterable[str]) -> str:
        return self.example_separator.join(piece for piece in pieces if piece)

    def format(self, /, **kwargs: Any) -> str:
        values = self.resolve_variables(**kwargs)
        examples = self.source.select(values)
        pieces = [
            self.prefix.format(**values),
            *(self.example_prompt.format(**example) for example in examples),
            self.suffix.format(**values),
        ]
        return self._join(pieces)

    async def aformat(self, /, **kwargs: Any) -> str:
        values = await self.aresolve_variables(**kwargs)
        examples = await self.source.aselect(values)
        pieces = await asyncio.gather(
            self.prefix.aformat(**values),
            *(self.example_prompt.aformat(**example) for example in examples),
            self.suffix.aformat(**values),
        )
        return self._join(pieces)


@dataclass(frozen=True)
class FewShotChatMessageTemplate(BasePromptTemplate):
    """
    Message-mode few-shot prompt.

    Produces only the example messages; instructions before or after the
    examples are separate records supplied by the caller.
    """

    example_prompt: Union[ChatMessageTemplate, PromptTemplate]
    examples: Optional[Sequence[Mapping[str, str]]] = None
    example_selector: Optional[BaseExampleSelector] = None
    extra_variables: Tuple[str, ...] = ()
    partials: Mapping[str, Any] = field(default_factory=dict)
    source: ExampleSource = field(init=False, repr=False, compare=False)
    input_variables: Tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        example_prompt = self.example_prompt
        if not isinstance(example_prompt, ChatMessageTemplate):
            example_prompt = coerce_template(example_prompt)
        partials = bind_values(self.partials)

        object.__setattr__(self, "example_prompt", example_prompt)
        object.__setattr__(self, "extra_variables", tuple(self.extra_variables))
        object.__setattr__(self, "source", example_source(self.examples, self.example_selector))
        if self.examples is not None:
            object.__setattr__(self, "examples", self.source.examples)
        object.__setattr__(self, "partials", partials)
        object.__setattr__(
            self, "input_variables", unbound_variables(_ordered_union(self.extra_variables), partials)
        )

    def _render_example(self, example: Mapping[str, str]) -> List[MessageRecord]:
        if isinstance(self.example_prompt, ChatMessageTemplate):
            return self.example_prompt.format_messages(**example)
        return [MessageRecord(role=MessageRole.HUMAN, content=self.example_prompt.format(**example))]

    async def _arender_example(self, example: Mapping[str, str]) -> List[MessageRecord]:
        if isinstance(self.example_prompt, ChatMessageTemplate):
            return await self.example_prompt.aformat_messages(**example)
        content = await self.example_prompt.aformat(**example)
        return [MessageRecord(role=MessageRole.HUMAN, content=content)]

    def format_messages(self, /, **kwargs: Any) -> List[MessageRecord]:
        values = self.resolve_variables(**kwargs)
        messages: List[MessageRecord] = []
        for example in self.source.select(values):
            messages.extend(self._render_example(example))
        return messages

    async def aformat_messages(self, /, **kwargs: Any) -> List[MessageRecord]:
        values = await self.aresolve_variables(**kwargs)
        examples = await self.source.aselect(values)
        rendered = await asyncio.gather(*(self._arender_example(e) for e in examples))
        return [message for group in rendered for message in group]
