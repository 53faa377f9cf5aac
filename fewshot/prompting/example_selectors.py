"""
Example selection strategies for few-shot prompts.

A selector narrows a candidate pool to the examples that go into one render.
Selection is deterministic for a given pool, configuration and input, and an
empty selection is a valid outcome.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from ..config import settings
from .messages import ChatMessageTemplate, get_buffer_string
from .template import PromptTemplate

logger = logging.getLogger(__name__)

Example = Dict[str, str]
ExamplePrompt = Union[PromptTemplate, ChatMessageTemplate]


class BaseExampleSelector(ABC):
    """Interface for choosing which examples to include in a prompt."""

    @abstractmethod
    def add_example(self, example: Mapping[str, str]) -> None:
        """Append an example to the candidate pool."""

    @abstractmethod
    def select_examples(self, input_variables: Mapping[str, Any]) -> List[Example]:
        """Return the ordered examples to render for these inputs."""

    async def aselect_examples(self, input_variables: Mapping[str, Any]) -> List[Example]:
        return self.select_examples(input_variables)


def get_text_length(text: str) -> int:
    """Whitespace-token count."""
    return len(text.split())


def render_example_text(example_prompt: ExamplePrompt, example: Mapping[str, str]) -> str:
    """Render one example to text, flattening message prompts."""
    if isinstance(example_prompt, ChatMessageTemplate):
        return get_buffer_string(example_prompt.format_messages(**example))
    return example_prompt.format(**example)


class LengthBasedExampleSelector(BaseExampleSelector):
    """
    Select a leading run of the pool that fits a length budget.

    The inputs for the current render count against ``max_length`` first.
    Examples are then taken in pool order until the next one would overflow
    the budget; selection stops there, shorter examples further down are not
    considered.

    Usage::

        selector = LengthBasedExampleSelector.from_examples(
            examples,
            example_prompt=PromptTemplate.from_template("Input: {input}\\nOutput: {output}"),
            max_length=25,
        )
        selector.select_examples({"adjective": "big"})
    """

    def __init__(
        self,
        examples: Iterable[Mapping[str, str]],
        example_prompt: ExamplePrompt,
        max_length: Optional[int] = None,
        get_text_length: Callable[[str], int] = get_text_length,
    ):
        self.example_prompt = example_prompt
        self.max_length = settings.default_max_length if max_length is None else max_length
        if self.max_length < 0:
            raise ValueError(f"max_length must be non-negative, got {self.max_length}")
        self.get_text_length = get_text_length
        self.examples: List[Example] = []
        self.example_text_lengths: List[int] = []
        for example in examples:
            self.add_example(example)

    @classmethod
    def from_examples(
        cls,
        examples: Iterable[Mapping[str, str]],
        *,
        example_prompt: ExamplePrompt,
        max_length: Optional[int] = None,
        get_text_length: Optional[Callable[[str], int]] = None,
    ) -> "LengthBasedExampleSelector":
        kwargs: Dict[str, Any] = {}
        if get_text_length is not None:
            kwargs["get_text_length"] = get_text_length
        return cls(examples, example_prompt=example_prompt, max_length=max_length, **kwargs)

    def _measure(self, example: Mapping[str, str]) -> int:
        return self.get_text_length(render_example_text(self.example_prompt, example))

    def add_example(self, example: Mapping[str, str]) -> None:
        example = dict(example)
        length = self._measure(example)
        self.examples.append(example)
        self.example_text_lengths.append(length)

    def select_examples(self, input_variables: Mapping[str, Any]) -> List[Example]:
        inputs = " ".join(str(value) for value in input_variables.values())
        remaining = self.max_length - self.get_text_length(inputs)

        selected: List[Example] = []
        for example, length in zip(self.examples, self.example_text_lengths):
            if length > remaining:
                break
            selected.append(dict(example))
            remaining -= length

        logger.debug(
            "Selected %d/%d examples within length budget %d",
            len(selected), len(self.examples), self.max_length,
        )
        return selected
