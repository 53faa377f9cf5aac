"""
Few-shot prompt templating: templates, partial binding, example selection
and string / message rendering.
"""

from .example_pool import SemanticSimilarityExampleSelector
from .example_selectors import (
    BaseExampleSelector,
    LengthBasedExampleSelector,
    get_text_length,
)
from .few_shot import FewShotChatMessageTemplate, FewShotPromptTemplate
from .messages import (
    ChatMessageTemplate,
    MessageRecord,
    MessageRole,
    MessageTemplate,
    get_buffer_string,
)
from .registry import PromptRegistry, load_prompt
from .template import BasePromptTemplate, PromptTemplate, from_template, parse_template
from .values import AsyncFactory, LiteralValue, SyncFactory, bind_value

__all__ = [
    # Templates
    "BasePromptTemplate",
    "PromptTemplate",
    "from_template",
    "parse_template",
    # Messages
    "ChatMessageTemplate",
    "MessageRecord",
    "MessageRole",
    "MessageTemplate",
    "get_buffer_string",
    # Few-shot composites
    "FewShotPromptTemplate",
    "FewShotChatMessageTemplate",
    # Selectors
    "BaseExampleSelector",
    "LengthBasedExampleSelector",
    "SemanticSimilarityExampleSelector",
    "get_text_length",
    # Registry
    "PromptRegistry",
    "load_prompt",
    # Bound values
    "LiteralValue",
    "SyncFactory",
    "AsyncFactory",
    "bind_value",
]
