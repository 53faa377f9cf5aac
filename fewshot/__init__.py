"""
Few-shot prompt templating engine.

USAGE:
======
```python
from fewshot import FewShotPromptTemplate, PromptTemplate

prompt = FewShotPromptTemplate(
    example_prompt=PromptTemplate.from_template("Human: {input}\\nAI: {output}"),
    examples=[{"input": "A?", "output": "a"}, {"input": "B?", "output": "b"}],
    suffix="Human: {question}\\nAI:",
)
print(prompt.format(question="C?"))
```

Graph QA (requires langchain-core):
===================================
```python
from fewshot import create_graph_qa_chain

chain = create_graph_qa_chain(llm, graph)
result = chain.invoke("Who directed Heat?")
```
"""
__version__ = "0.1.0"

from .errors import (
    DuplicatePartialVariableError,
    MalformedTemplateError,
    MissingVariableError,
    PromptTemplateError,
    UnknownPartialVariableError,
)
from .prompting import (
    BaseExampleSelector,
    ChatMessageTemplate,
    FewShotChatMessageTemplate,
    FewShotPromptTemplate,
    LengthBasedExampleSelector,
    MessageRecord,
    MessageRole,
    PromptRegistry,
    PromptTemplate,
    SemanticSimilarityExampleSelector,
    from_template,
)

__all__ = [
    # Templates
    "PromptTemplate",
    "ChatMessageTemplate",
    "FewShotPromptTemplate",
    "FewShotChatMessageTemplate",
    "MessageRecord",
    "MessageRole",
    "PromptRegistry",
    "from_template",
    # Selectors
    "BaseExampleSelector",
    "LengthBasedExampleSelector",
    "SemanticSimilarityExampleSelector",
    # Errors
    "PromptTemplateError",
    "MalformedTemplateError",
    "MissingVariableError",
    "UnknownPartialVariableError",
    "DuplicatePartialVariableError",
    # Chains (requires LangChain)
    "GraphQAChain",
    "GraphQAResult",
    "create_graph_qa_chain",
]


def __getattr__(name: str):
    """Lazy import to avoid loading LangChain unless needed."""
    if name in ("GraphQAChain", "GraphQAResult", "create_graph_qa_chain"):
        from .chains import GraphQAChain, GraphQAResult, create_graph_qa_chain
        return locals()[name]

    raise AttributeError(f"module 'fewshot' has no attribute '{name}'")
