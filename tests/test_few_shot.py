"""
Tests for the few-shot composites.

Covers:
1. String mode joins prefix, examples and suffix with blank lines
2. Message mode emits one human record per example for string example prompts,
   and the full message sequence for chat example prompts
3. Exactly one of examples / example_selector is accepted
4. Missing variables fail in both modes
5. Async rendering and async partials match the sync results
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Mapping

import pytest

from fewshot.errors import DuplicatePartialVariableError, MissingVariableError
from fewshot.prompting import (
    BaseExampleSelector,
    ChatMessageTemplate,
    FewShotChatMessageTemplate,
    FewShotPromptTemplate,
    LengthBasedExampleSelector,
    MessageRecord,
    MessageRole,
    PromptTemplate,
)

POOL = [{"input": "A?", "output": "a"}, {"input": "B?", "output": "b"}]
EXAMPLE_PROMPT = PromptTemplate.from_template("Human: {input}\nAI: {output}")


class RecordingSelector(BaseExampleSelector):
    """Returns the whole pool and remembers what it was asked with."""

    def __init__(self, examples):
        self.examples = list(examples)
        self.seen: List[Dict[str, Any]] = []
        self.async_calls = 0

    def add_example(self, example):
        self.examples.append(dict(example))

    def select_examples(self, input_variables: Mapping[str, Any]):
        self.seen.append(dict(input_variables))
        return list(self.examples)

    async def aselect_examples(self, input_variables):
        self.async_calls += 1
        return self.select_examples(input_variables)


# ---------------------------------------------------------------------------
# String mode
# ---------------------------------------------------------------------------

def test_string_mode_without_prefix_or_suffix():
    prompt = FewShotPromptTemplate(example_prompt=EXAMPLE_PROMPT, examples=POOL)
    assert prompt.input_variables == ()
    assert prompt.format() == "Human: A?\nAI: a\n\nHuman: B?\nAI: b"


def test_string_mode_with_prefix_and_suffix():
    prompt = FewShotPromptTemplate(
        example_prompt=EXAMPLE_PROMPT,
        examples=POOL,
        prefix="You are a helpful assistant.",
        suffix="Human: {question}\nAI:",
    )
    assert prompt.input_variables == ("question",)
    assert prompt.format(question="C?") == (
        "You are a helpful assistant.\n\n"
        "Human: A?\nAI: a\n\n"
        "Human: B?\nAI: b\n\n"
        "Human: C?\nAI:"
    )


def test_string_mode_custom_separator():
    prompt = FewShotPromptTemplate(
        example_prompt=EXAMPLE_PROMPT, examples=POOL, example_separator="\n---\n"
    )
    assert prompt.format() == "Human: A?\nAI: a\n---\nHuman: B?\nAI: b"


def test_string_mode_with_length_selector():
    selector = LengthBasedExampleSelector.from_examples(
        POOL, example_prompt=EXAMPLE_PROMPT, max_length=6
    )
    prompt = FewShotPromptTemplate(
        example_prompt=EXAMPLE_PROMPT,
        example_selector=selector,
        suffix="Human: {question}\nAI:",
    )
    # "C?" costs 1 token, the first example 4, the second would overflow
    assert prompt.format(question="C?") == "Human: A?\nAI: a\n\nHuman: C?\nAI:"


def test_empty_selection_renders_prefix_and_suffix_only():
    selector = LengthBasedExampleSelector.from_examples(
        POOL, example_prompt=EXAMPLE_PROMPT, max_length=1
    )
    prompt = FewShotPromptTemplate(
        example_prompt=EXAMPLE_PROMPT,
        example_selector=selector,
        prefix="Intro",
        suffix="Outro",
    )
    assert prompt.format() == "Intro\n\nOutro"


def test_string_mode_missing_variable():
    prompt = FewShotPromptTemplate(
        example_prompt=EXAMPLE_PROMPT, examples=POOL, suffix="Human: {question}\nAI:"
    )
    with pytest.raises(MissingVariableError) as exc_info:
        prompt.format()
    assert exc_info.value.name == "question"


def test_missing_example_field():
    prompt = FewShotPromptTemplate(example_prompt=EXAMPLE_PROMPT, examples=[{"input": "A?"}])
    with pytest.raises(MissingVariableError) as exc_info:
        prompt.format()
    assert exc_info.value.name == "output"


def test_selector_receives_resolved_inputs():
    selector = RecordingSelector(POOL)
    prompt = FewShotPromptTemplate(
        example_prompt=EXAMPLE_PROMPT,
        example_selector=selector,
        prefix="Tone: {tone}",
        suffix="{question}",
    ).partial(tone=lambda: "dry")

    prompt.format(question="C?")
    assert selector.seen == [{"question": "C?", "tone": "dry"}]


def test_composite_partial():
    prompt = FewShotPromptTemplate(
        example_prompt=EXAMPLE_PROMPT,
        examples=POOL[:1],
        prefix="You are {persona}.",
        suffix="{question}",
    )
    bound = prompt.partial(persona="terse")

    assert prompt.input_variables == ("persona", "question")
    assert bound.input_variables == ("question",)
    assert bound.format(question="C?") == "You are terse.\n\nHuman: A?\nAI: a\n\nC?"
    with pytest.raises(DuplicatePartialVariableError):
        bound.partial(persona="chatty")


def test_example_prompt_partials_apply_per_example():
    example_prompt = EXAMPLE_PROMPT.partial(output=lambda: "same")
    prompt = FewShotPromptTemplate(
        example_prompt=example_prompt, examples=[{"input": "A?"}, {"input": "B?"}]
    )
    assert prompt.format() == "Human: A?\nAI: same\n\nHuman: B?\nAI: same"


def test_extra_variables_are_required():
    prompt = FewShotPromptTemplate(
        example_prompt=EXAMPLE_PROMPT,
        example_selector=RecordingSelector(POOL),
        suffix="{question}",
        extra_variables=("topic",),
    )
    assert prompt.input_variables == ("question", "topic")
    with pytest.raises(MissingVariableError) as exc_info:
        prompt.format(question="C?")
    assert exc_info.value.name == "topic"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"examples": POOL, "example_selector": RecordingSelector(POOL)},
        {},
    ],
)
def test_exactly_one_example_source(kwargs):
    with pytest.raises(ValueError):
        FewShotPromptTemplate(example_prompt=EXAMPLE_PROMPT, **kwargs)
    with pytest.raises(ValueError):
        FewShotChatMessageTemplate(example_prompt=EXAMPLE_PROMPT, **kwargs)


def test_empty_static_examples_are_allowed():
    prompt = FewShotPromptTemplate(example_prompt=EXAMPLE_PROMPT, examples=[], suffix="Done")
    assert prompt.format() == "Done"


# ---------------------------------------------------------------------------
# Message mode
# ---------------------------------------------------------------------------

def test_message_mode_single_record_per_example():
    prompt = FewShotChatMessageTemplate(example_prompt=EXAMPLE_PROMPT, examples=POOL)
    assert prompt.format_messages() == [
        MessageRecord(role=MessageRole.HUMAN, content="Human: A?\nAI: a"),
        MessageRecord(role=MessageRole.HUMAN, content="Human: B?\nAI: b"),
    ]


def test_message_mode_chat_example_prompt():
    example_prompt = ChatMessageTemplate.from_messages([("human", "{input}"), ("ai", "{output}")])
    prompt = FewShotChatMessageTemplate(example_prompt=example_prompt, examples=POOL)
    messages = prompt.format_messages()

    assert [m.role for m in messages] == [
        MessageRole.HUMAN, MessageRole.AI, MessageRole.HUMAN, MessageRole.AI,
    ]
    assert [m.content for m in messages] == ["A?", "a", "B?", "b"]


def test_message_mode_missing_variable():
    prompt = FewShotChatMessageTemplate(
        example_prompt=EXAMPLE_PROMPT,
        example_selector=RecordingSelector(POOL),
        extra_variables=("question",),
    )
    with pytest.raises(MissingVariableError) as exc_info:
        prompt.format_messages()
    assert exc_info.value.name == "question"


def test_message_mode_missing_example_field():
    example_prompt = ChatMessageTemplate.from_messages([("human", "{input}"), ("ai", "{output}")])
    prompt = FewShotChatMessageTemplate(example_prompt=example_prompt, examples=[{"input": "A?"}])
    with pytest.raises(MissingVariableError) as exc_info:
        prompt.format_messages()
    assert exc_info.value.name == "output"


def test_message_mode_forwards_inputs_to_selector():
    selector = RecordingSelector(POOL[:1])
    prompt = FewShotChatMessageTemplate(
        example_prompt=EXAMPLE_PROMPT,
        example_selector=selector,
        extra_variables=("question",),
    )
    prompt.format_messages(question="C?")
    assert selector.seen == [{"question": "C?"}]


# ---------------------------------------------------------------------------
# Async rendering
# ---------------------------------------------------------------------------

async def _slow_persona():
    await asyncio.sleep(0)
    return "terse"


@pytest.mark.asyncio
async def test_aformat_matches_format():
    prompt = FewShotPromptTemplate(
        example_prompt=EXAMPLE_PROMPT,
        examples=POOL,
        prefix="You are {persona}.",
        suffix="{question}",
    )
    assert await prompt.aformat(persona="terse", question="C?") == prompt.format(
        persona="terse", question="C?"
    )


@pytest.mark.asyncio
async def test_async_partial_matches_literal():
    prompt = FewShotPromptTemplate(
        example_prompt=EXAMPLE_PROMPT,
        examples=POOL,
        prefix="You are {persona}.",
    )
    assert await prompt.partial(persona=_slow_persona).aformat() == prompt.format(persona="terse")


def test_async_partial_in_sync_format():
    prompt = FewShotPromptTemplate(
        example_prompt=EXAMPLE_PROMPT, examples=POOL, prefix="You are {persona}."
    )
    assert prompt.partial(persona=_slow_persona).format() == prompt.format(persona="terse")


@pytest.mark.asyncio
async def test_aformat_messages_matches_format_messages():
    example_prompt = ChatMessageTemplate.from_messages([("human", "{input}"), ("ai", "{output}")])
    prompt = FewShotChatMessageTemplate(example_prompt=example_prompt, examples=POOL)
    assert await prompt.aformat_messages() == prompt.format_messages()


@pytest.mark.asyncio
async def test_async_render_uses_async_selection():
    selector = RecordingSelector(POOL)
    prompt = FewShotChatMessageTemplate(example_prompt=EXAMPLE_PROMPT, example_selector=selector)
    messages = await prompt.aformat_messages()

    assert selector.async_calls == 1
    assert len(messages) == 2


def test_static_examples_are_copied_at_construction():
    pool = [{"input": "A?", "output": "a"}]
    prompt = FewShotPromptTemplate(
        example_prompt=PromptTemplate.from_template("{input}|{output}"),
        examples=pool,
        prefix="{p}",
    )
    before = prompt.format(p="P")
    pool.append({"input": "B?", "output": "b"})

    assert prompt.format(p="P") == before == "P\n\nA?|a"
    assert prompt.partial(p="P").format() == before
    assert isinstance(prompt.examples, tuple)


def test_chat_static_examples_are_copied_at_construction():
    pool = [dict(POOL[0])]
    prompt = FewShotChatMessageTemplate(example_prompt=EXAMPLE_PROMPT, examples=pool)
    pool.append(dict(POOL[1]))
    assert len(prompt.format_messages()) == 1


def test_self_placeholder_in_composites():
    prompt = FewShotPromptTemplate(
        example_prompt=EXAMPLE_PROMPT,
        examples=POOL[:1],
        prefix="About {self}",
    )
    assert prompt.input_variables == ("self",)
    assert prompt.format(**{"self": "me"}) == "About me\n\nHuman: A?\nAI: a"
    assert prompt.partial(**{"self": "me"}).format() == "About me\n\nHuman: A?\nAI: a"

    chat = ChatMessageTemplate.from_messages([("human", "{self}")])
    assert chat.format_messages(**{"self": "me"}) == [MessageRecord(role=MessageRole.HUMAN, content="me")]


@pytest.mark.asyncio
async def test_self_placeholder_async():
    t = PromptTemplate.from_template("{self}")
    assert await t.aformat(**{"self": "x"}) == "x"
    chat = ChatMessageTemplate.from_messages([("ai", "{self}")])
    assert (await chat.aformat_messages(**{"self": "x"}))[0].content == "x"
