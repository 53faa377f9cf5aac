"""
Named prompt templates backed by a directory of ``.txt`` pattern files.

This module centralizes prompt patterns so wording changes happen in one place
and are reused by chains, scripts and tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, MutableMapping, Optional, Union

from ..config import settings
from .template import BasePromptTemplate, PromptTemplate

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = ".txt"


def load_prompt(path: Union[str, Path]) -> PromptTemplate:
    """Build a template from a pattern file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Prompt template not found: {path}")
    return PromptTemplate.from_template(path.read_text(encoding="utf-8").rstrip("\n"))


@dataclass
class PromptRegistry:
    """
    Template lookup by name.

    Explicitly registered templates win over files; ``<name>.txt`` files in
    ``template_dir`` are parsed on first use and kept in ``cache``. Pass a
    shared mapping as ``cache`` to reuse parsed patterns across registries.
    """

    template_dir: Path = field(default_factory=lambda: settings.template_dir)
    cache: Optional[MutableMapping[str, str]] = None

    def __post_init__(self) -> None:
        self.template_dir = Path(self.template_dir)
        if self.cache is None:
            self.cache = {}
        self._registered: Dict[str, BasePromptTemplate] = {}

    def register(self, name: str, template: Union[str, BasePromptTemplate]) -> BasePromptTemplate:
        if isinstance(template, str):
            template = PromptTemplate.from_template(template)
        self._registered[name] = template
        return template

    def _load_pattern(self, name: str) -> str:
        cache_key = str(self.template_dir / name)
        if cache_key not in self.cache:
            path = self.template_dir / f"{name}{TEMPLATE_SUFFIX}"
            if not path.exists():
                raise KeyError(f"Unknown prompt: {name}. Known: {self.names()}")
            self.cache[cache_key] = path.read_text(encoding="utf-8").rstrip("\n")
            logger.debug("Loaded prompt template %s from %s", name, path)
        return self.cache[cache_key]

    def get(self, name: str) -> BasePromptTemplate:
        if name in self._registered:
            return self._registered[name]
        return PromptTemplate.from_template(self._load_pattern(name))

    def names(self) -> List[str]:
        on_disk = []
        if self.template_dir.is_dir():
            on_disk = [p.stem for p in self.template_dir.glob(f"*{TEMPLATE_SUFFIX}")]
        return sorted(set(on_disk) | set(self._registered))

    def __contains__(self, name: str) -> bool:
        return name in self.names()
