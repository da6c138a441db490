"""
Prompt item model: weighted leaves, sections and parameters.
"""

from .parameters import (
    Parameters,
    apply_parameters,
    create_parameters,
    find_placeholders,
    merge_parameters,
)
from .weighted import (
    Content,
    Context,
    Instruction,
    Trait,
    Weighted,
    create_content,
    create_context,
    create_instruction,
    create_trait,
    create_weighted,
)
from .section import Section, create_section

__all__ = [
    "Parameters",
    "apply_parameters",
    "create_parameters",
    "find_placeholders",
    "merge_parameters",
    "Weighted",
    "Instruction",
    "Context",
    "Content",
    "Trait",
    "create_weighted",
    "create_instruction",
    "create_context",
    "create_content",
    "create_trait",
    "Section",
    "create_section",
]
