"""
String templates with ``{name}`` placeholders and partial binding.

    >>> t = PromptTemplate.from_template("Tell me a {adjective} joke about {content}.")
    >>> t.input_variables
    ('adjective', 'content')
    >>> t.partial(adjective="funny").format(content="chickens")
    'Tell me a funny joke about chickens.'

Templates are frozen: ``partial()`` returns a new instance and never touches
the receiver, so one template can be rendered from many tasks at once.
"""

from __future__ import annotations

import string
from abc import ABC
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from ..errors import (
    DuplicatePartialVariableError,
    MalformedTemplateError,
    MissingVariableError,
    UnknownPartialVariableError,
)
from .values import BoundValue, LiteralValue, aresolve_all, bind_values, resolve_all

_FORMATTER = string.Formatter()


def parse_template(template: str) -> Tuple[str, ...]:
    """Return the placeholder names of ``template`` in first-appearance order."""
    try:
        parsed = list(_FORMATTER.parse(template))
    except ValueError as exc:
        raise MalformedTemplateError(template, str(exc)) from None

    names: Dict[str, None] = {}
    for _, field_name, format_spec, conversion in parsed:
        if field_name is None:
            continue
        if not field_name:
            raise MalformedTemplateError(template, "empty placeholder")
        if not field_name.isidentifier():
            raise MalformedTemplateError(
                template, f"invalid placeholder name {field_name!r}"
            )
        if format_spec and ("{" in format_spec or "}" in format_spec):
            raise MalformedTemplateError(
                template, f"nested placeholder in format spec of {field_name!r}"
            )
        if conversion not in (None, "r", "s", "a"):
            raise MalformedTemplateError(
                template, f"invalid conversion {conversion!r} for {field_name!r}"
            )
        names.setdefault(field_name, None)
    return tuple(names)


def unbound_variables(
    declared: Iterable[str], partials: Mapping[str, Any]
) -> Tuple[str, ...]:
    """Declared names minus bound ones; partial keys must all be declared."""
    declared = tuple(declared)
    for name in partials:
        if name not in declared:
            raise UnknownPartialVariableError(name, declared)
    return tuple(name for name in declared if name not in partials)


class BasePromptTemplate(ABC):
    """
    Shared partial-binding and value-resolution behaviour.

    Subclasses are frozen dataclasses exposing ``input_variables`` (names the
    caller must still supply) and ``partials`` (name -> bound value), and
    derive ``input_variables`` in ``__post_init__``.
    """

    input_variables: Tuple[str, ...]
    partials: Mapping[str, BoundValue]

    def partial(self, /, **bindings: Any):
        """Bind some variables ahead of time, returning a new template."""
        for name in bindings:
            if name in self.partials:
                raise DuplicatePartialVariableError(name)
            if name not in self.input_variables:
                raise UnknownPartialVariableError(name, self.input_variables)
        return replace(self, partials={**self.partials, **bind_values(bindings)})

    def _collect_values(self, kwargs: Mapping[str, Any]) -> Dict[str, BoundValue]:
        for name in self.input_variables:
            if name not in kwargs:
                raise MissingVariableError(name)
        values: Dict[str, BoundValue] = {
            name: LiteralValue(value) for name, value in kwargs.items()
        }
        # partials take precedence over caller values
        values.update(self.partials)
        return values

    def resolve_variables(self, /, **kwargs: Any) -> Dict[str, Any]:
        """Resolve caller values and partials into plain values."""
        values = self._collect_values(kwargs)
        return resolve_all(values, values)

    async def aresolve_variables(self, /, **kwargs: Any) -> Dict[str, Any]:
        values = self._collect_values(kwargs)
        return await aresolve_all(values, values)


@dataclass(frozen=True)
class PromptTemplate(BasePromptTemplate):
    """A pattern with ``{name}`` placeholders (``{{`` / ``}}`` escape braces)."""

    template: str
    partials: Mapping[str, Any] = field(default_factory=dict)
    template_variables: Tuple[str, ...] = field(init=False)
    input_variables: Tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        variables = parse_template(self.template)
        partials = bind_values(self.partials)
        object.__setattr__(self, "template_variables", variables)
        object.__setattr__(self, "partials", partials)
        object.__setattr__(self, "input_variables", unbound_variables(variables, partials))

    @classmethod
    def from_template(
        cls, template: str, partial_variables: Optional[Mapping[str, Any]] = None
    ) -> "PromptTemplate":
        return cls(template=template, partials=dict(partial_variables or {}))

    def format(self, /, **kwargs: Any) -> str:
        return self.template.format(**self.resolve_variables(**kwargs))

    async def aformat(self, /, **kwargs: Any) -> str:
        return self.template.format(**await self.aresolve_variables(**kwargs))


def from_template(
    template: str, partial_variables: Optional[Mapping[str, Any]] = None
) -> PromptTemplate:
    """Build a :class:`PromptTemplate`, inferring its variables from ``template``."""
    return PromptTemplate.from_template(template, partial_variables)


def coerce_template(value: Any) -> PromptTemplate:
    if isinstance(value, PromptTemplate):
        return value
    if isinstance(value, str):
        return PromptTemplate.from_template(value)
    raise TypeError(f"Expected a PromptTemplate or pattern string, got {type(value).__name__}")
