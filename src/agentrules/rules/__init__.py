"""Rule documents and path-based rule resolution."""

from agentrules.enums import RuleScope

from ._models import RuleDocument
from ._resolver import RuleResolver

__all__ = [
    "RuleDocument",
    "RuleResolver",
    "RuleScope",
]
