"""
Embedding-indexed example pool for similarity-based example selection.

Embeds each example's text and selects the k examples most similar to the
current inputs at render time. The default embedder is a sentence-transformers
model, loaded on first use; any ``embed(texts) -> array`` callable can be
injected instead.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence

import numpy as np

from ..config import settings
from ..errors import MissingVariableError
from .example_selectors import BaseExampleSelector, Example

logger = logging.getLogger(__name__)

EmbedFn = Callable[[List[str]], Any]


def _normalize(matrix: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    norms[norms == 0] = 1.0
    return matrix / norms


class SemanticSimilarityExampleSelector(BaseExampleSelector):
    """
    Maintains a pool of examples, indexed by embedding.

    Usage::

        from fewshot.prompting.example_data import CYPHER_EXAMPLES
        selector = SemanticSimilarityExampleSelector(
            CYPHER_EXAMPLES, k=2, input_keys=["question"], example_keys=["question"]
        )
        selector.select_examples({"question": "Who acted in The Matrix?"})
    """

    def __init__(
        self,
        examples: Iterable[Mapping[str, str]],
        k: Optional[int] = None,
        input_keys: Optional[Sequence[str]] = None,
        example_keys: Optional[Sequence[str]] = None,
        embed: Optional[EmbedFn] = None,
        model_name: Optional[str] = None,
    ):
        self.examples: List[Example] = [dict(e) for e in examples]
        self.k = settings.similarity_k if k is None else k
        if self.k < 0:
            raise ValueError(f"k must be non-negative, got {self.k}")
        self.input_keys = list(input_keys) if input_keys else None
        self.example_keys = list(example_keys) if example_keys else None
        self._embed = embed
        self._model_name = model_name or settings.embedding_model
        self._embeddings: Optional[np.ndarray] = None

    @classmethod
    def from_examples(
        cls,
        examples: Iterable[Mapping[str, str]],
        *,
        k: Optional[int] = None,
        input_keys: Optional[Sequence[str]] = None,
        example_keys: Optional[Sequence[str]] = None,
        embed: Optional[EmbedFn] = None,
        model_name: Optional[str] = None,
    ) -> "SemanticSimilarityExampleSelector":
        return cls(
            examples,
            k=k,
            input_keys=input_keys,
            example_keys=example_keys,
            embed=embed,
            model_name=model_name,
        )

    def _ensure_embedder(self) -> EmbedFn:
        if self._embed is not None:
            return self._embed
        from sentence_transformers import SentenceTransformer

        logger.info("Loading example pool embedding model: %s", self._model_name)
        model = SentenceTransformer(self._model_name)
        self._embed = lambda texts: model.encode(texts, show_progress_bar=False)
        return self._embed

    def _example_text(self, example: Mapping[str, str]) -> str:
        keys = self.example_keys or list(example)
        return " ".join(str(example[key]) for key in keys)

    def _query_text(self, input_variables: Mapping[str, Any]) -> str:
        keys = self.input_keys or list(input_variables)
        for key in keys:
            if key not in input_variables:
                raise MissingVariableError(key)
        return " ".join(str(input_variables[key]) for key in keys)

    def _ensure_loaded(self) -> np.ndarray:
        if self._embeddings is not None:
            return self._embeddings
        embed = self._ensure_embedder()
        texts = [self._example_text(ex) for ex in self.examples]
        self._embeddings = _normalize(np.atleast_2d(np.asarray(embed(texts), dtype=float)))
        return self._embeddings

    def add_example(self, example: Mapping[str, str]) -> None:
        self.examples.append(dict(example))
        self._embeddings = None

    def select_examples(self, input_variables: Mapping[str, Any]) -> List[Example]:
        """
        Select the *k* examples most similar to the inputs, most similar first.

        Ties keep pool order.
        """
        if not self.examples or self.k == 0:
            return []
        embeddings = self._ensure_loaded()

        query = np.atleast_2d(
            np.asarray(self._ensure_embedder()([self._query_text(input_variables)]), dtype=float)
        )
        scores = (_normalize(query) @ embeddings.T)[0]
        # stable sort on negated scores keeps pool order for ties
        top_indices = np.argsort(-scores, kind="stable")[: self.k]
        logger.debug("Selected example indices %s", top_indices.tolist())
        return [dict(self.examples[int(i)]) for i in top_indices]
