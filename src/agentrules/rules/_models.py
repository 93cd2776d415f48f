"""Rule document model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from agentrules.enums import RuleScope

if TYPE_CHECKING:
    from pathlib import Path


@dataclass(frozen=True, slots=True)
class RuleDocument:
    """A rule payload that applies to edited paths.

    COMMON documents have no patterns and always apply. SCOPED documents
    carry at least one glob and apply when any of them matches the path.

    Attributes:
        id: Unique identifier of the document.
        scope: Whether the document is common or path-scoped.
        payload: The document body, treated as opaque text.
        patterns: Glob patterns for SCOPED documents, empty for COMMON.
        registration_order: Position in load order, used as a tie-breaker.
        source: File the document was read from, if any.
    """

    id: str
    scope: RuleScope
    payload: str
    patterns: tuple[str, ...] = ()
    registration_order: int = 0
    source: Path | None = None

    def __post_init__(self) -> None:
        if self.scope == RuleScope.COMMON and self.patterns:
            msg = f"Common rule document {self.id!r} cannot have patterns"
            raise ValueError(msg)
        if self.scope == RuleScope.SCOPED and (
            not self.patterns or any(not pattern for pattern in self.patterns)
        ):
            msg = f"Scoped rule document {self.id!r} needs at least one pattern"
            raise ValueError(msg)

    @classmethod
    def common(
        cls,
        doc_id: str,
        payload: str,
        *,
        registration_order: int = 0,
        source: Path | None = None,
    ) -> RuleDocument:
        """Create a document that always applies."""
        return cls(
            id=doc_id,
            scope=RuleScope.COMMON,
            payload=payload,
            registration_order=registration_order,
            source=source,
        )

    @classmethod
    def scoped(
        cls,
        doc_id: str,
        payload: str,
        patterns: tuple[str, ...] | list[str],
        *,
        registration_order: int = 0,
        source: Path | None = None,
    ) -> RuleDocument:
        """Create a document that applies to paths matching any pattern."""
        return cls(
            id=doc_id,
            scope=RuleScope.SCOPED,
            payload=payload,
            patterns=tuple(patterns),
            registration_order=registration_order,
            source=source,
        )
