"""
Error taxonomy for template construction, partial binding and rendering.

Construction errors are raised by the factory, binding errors by
``partial()``, render errors by ``format()`` / ``format_messages()``.
An empty example selection is never an error.
"""


class PromptTemplateError(ValueError):
    """Base class for all templating errors."""


class MalformedTemplateError(PromptTemplateError):
    """Placeholder syntax is invalid (unbalanced braces, bad names)."""

    def __init__(self, template: str, reason: str):
        self.template = template
        self.reason = reason
        super().__init__(f"Malformed template ({reason}): {template!r}")


class MissingVariableError(PromptTemplateError):
    """A required variable was not supplied at render time."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Missing value for template variable: {name!r}")


class UnknownPartialVariableError(PromptTemplateError):
    """A partial binding targets a name the template does not declare."""

    def __init__(self, name: str, declared=()):
        self.name = name
        self.declared = tuple(declared)
        super().__init__(
            f"Cannot bind {name!r}: not a declared variable. "
            f"Declared: {list(self.declared)}"
        )


class DuplicatePartialVariableError(PromptTemplateError):
    """A partial binding targets a name that is already bound."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Variable {name!r} is already bound by a partial")
