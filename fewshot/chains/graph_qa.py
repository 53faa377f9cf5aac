"""
Graph QA Chain - question answering over a graph store.

Three stages, each a plain render-and-call:
1. Render the Cypher prompt (schema + question + few-shot examples) and ask
   the model for a statement
2. Execute the statement against the graph store
3. Render the QA prompt with the returned rows and ask the model for the answer

The model is any langchain_core runnable (chat model or LLM) exposing
``invoke`` / ``ainvoke``.
"""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union, runtime_checkable

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_core.output_parsers import StrOutputParser
from pydantic import BaseModel, Field

from ..config import settings
from ..logger import logger
from ..prompting import (
    BasePromptTemplate,
    FewShotPromptTemplate,
    LengthBasedExampleSelector,
    MessageRecord,
    MessageRole,
    PromptRegistry,
)
from ..prompting.example_data import CYPHER_EXAMPLES


@runtime_checkable
class GraphStore(Protocol):
    """Minimal graph database interface consumed by the chain."""

    def query(self, statement: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        ...

    def get_schema(self) -> str:
        ...

    def refresh_schema(self) -> None:
        ...


_MESSAGE_TYPES = {
    MessageRole.HUMAN: HumanMessage,
    MessageRole.AI: AIMessage,
    MessageRole.SYSTEM: SystemMessage,
}


def to_langchain_messages(records: Sequence[MessageRecord]) -> List[BaseMessage]:
    """Convert rendered records into langchain_core message objects."""
    return [_MESSAGE_TYPES[record.role](content=record.content) for record in records]


_CYPHER_FENCE = re.compile(r"```(?:cypher)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def extract_cypher(text: str) -> str:
    """Pull the statement out of a Markdown code fence, if the model used one."""
    match = _CYPHER_FENCE.search(text)
    statement = match.group(1) if match else text
    return statement.strip()


class GraphQAResult(BaseModel):
    """Answer plus the query and rows it was derived from."""

    question: str
    cypher: str
    context: List[Dict[str, Any]] = Field(default_factory=list)
    answer: str
    intermediate_steps: List[Dict[str, Any]] = Field(default_factory=list)


PromptInput = Union[str, List[BaseMessage]]


class GraphQAChain:
    """
    Generate a Cypher query, run it, and synthesize an answer.

    Example:
        ```python
        from fewshot.chains import create_graph_qa_chain

        chain = create_graph_qa_chain(llm, graph)
        result = chain.invoke("Who directed Heat?")
        print(result.answer)
        ```
    """

    def __init__(
        self,
        llm: Any,
        graph: GraphStore,
        cypher_prompt: BasePromptTemplate,
        qa_prompt: BasePromptTemplate,
        qa_llm: Optional[Any] = None,
        top_k: Optional[int] = None,
        return_intermediate_steps: bool = False,
    ):
        self.llm = llm
        self.qa_llm = qa_llm or llm
        self.graph = graph
        self.cypher_prompt = cypher_prompt
        self.qa_prompt = qa_prompt
        self.top_k = settings.graph_qa_top_k if top_k is None else top_k
        self.return_intermediate_steps = return_intermediate_steps
        self._parser = StrOutputParser()

    @staticmethod
    def _render(prompt: BasePromptTemplate, **kwargs: Any) -> PromptInput:
        if hasattr(prompt, "format_messages"):
            return to_langchain_messages(prompt.format_messages(**kwargs))
        return prompt.format(**kwargs)

    @staticmethod
    async def _arender(prompt: BasePromptTemplate, **kwargs: Any) -> PromptInput:
        if hasattr(prompt, "aformat_messages"):
            return to_langchain_messages(await prompt.aformat_messages(**kwargs))
        return await prompt.aformat(**kwargs)

    def _result(self, question: str, cypher: str, rows: List[Dict[str, Any]], answer: str) -> GraphQAResult:
        steps = [{"query": cypher}, {"context": rows}] if self.return_intermediate_steps else []
        return GraphQAResult(
            question=question, cypher=cypher, context=rows, answer=answer, intermediate_steps=steps
        )

    def invoke(self, question: str) -> GraphQAResult:
        cypher_input = self._render(
            self.cypher_prompt, schema=self.graph.get_schema(), question=question
        )
        cypher = extract_cypher(self._parser.invoke(self.llm.invoke(cypher_input)))
        logger.info(f"Generated Cypher: {cypher}")

        rows = self.graph.query(cypher)[: self.top_k]
        logger.info(f"Graph returned {len(rows)} rows")

        qa_input = self._render(
            self.qa_prompt, context=json.dumps(rows, default=str), question=question
        )
        answer = self._parser.invoke(self.qa_llm.invoke(qa_input))
        return self._result(question, cypher, rows, answer)

    async def ainvoke(self, question: str) -> GraphQAResult:
        cypher_input = await self._arender(
            self.cypher_prompt, schema=self.graph.get_schema(), question=question
        )
        cypher = extract_cypher(self._parser.invoke(await self.llm.ainvoke(cypher_input)))
        logger.info(f"Generated Cypher: {cypher}")

        rows = (await asyncio.to_thread(self.graph.query, cypher))[: self.top_k]
        logger.info(f"Graph returned {len(rows)} rows")

        qa_input = await self._arender(
            self.qa_prompt, context=json.dumps(rows, default=str), question=question
        )
        answer = self._parser.invoke(await self.qa_llm.ainvoke(qa_input))
        return self._result(question, cypher, rows, answer)


def create_graph_qa_chain(
    llm: Any,
    graph: GraphStore,
    examples: Optional[Sequence[Dict[str, str]]] = None,
    max_length: Optional[int] = None,
    registry: Optional[PromptRegistry] = None,
    **kwargs: Any,
) -> GraphQAChain:
    """Wire the bundled templates with a length-budgeted example selector."""
    registry = registry or PromptRegistry()
    example_prompt = registry.get("cypher_example")
    selector = LengthBasedExampleSelector.from_examples(
        CYPHER_EXAMPLES if examples is None else examples,
        example_prompt=example_prompt,
        max_length=max_length,
    )
    cypher_prompt = FewShotPromptTemplate(
        example_prompt=example_prompt,
        example_selector=selector,
        prefix=registry.get("cypher_prefix"),
        suffix=registry.get("cypher_suffix"),
    )
    return GraphQAChain(
        llm=llm,
        graph=graph,
        cypher_prompt=cypher_prompt,
        qa_prompt=registry.get("graph_qa"),
        **kwargs,
    )
