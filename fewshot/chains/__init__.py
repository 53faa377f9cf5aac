"""
Chains Module.
Pipelines built on the templating engine and a langchain_core model.
"""

from .graph_qa import (
    GraphQAChain,
    GraphQAResult,
    GraphStore,
    create_graph_qa_chain,
    extract_cypher,
    to_langchain_messages,
)

__all__ = [
    "GraphQAChain",
    "GraphQAResult",
    "GraphStore",
    "create_graph_qa_chain",
    "extract_cypher",
    "to_langchain_messages",
]
