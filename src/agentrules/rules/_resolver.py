"""Rule resolution for edited paths.

This module selects the rule documents that apply to a path and orders them:
common documents first, then path-scoped documents from most to least
specific.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, final

from agentrules.enums import RuleScope
from agentrules.patterns import compile_pattern

if TYPE_CHECKING:
    from collections.abc import Iterable

    from structlog.typing import FilteringBoundLogger

    from agentrules.patterns import CompiledPattern

    from ._models import RuleDocument


def _scoped_sort_key(item: tuple[RuleDocument, int]) -> tuple[int, int]:
    """Create sort key for scoped documents.

    Args:
        item: Tuple of (document, specificity for the resolved path).

    Returns:
        Tuple of (negated specificity, registration order) for sorting.
    """
    document, specificity = item
    return (-specificity, document.registration_order)


@final
class RuleResolver:
    """Resolves the ordered rule payloads for a path.

    The resolver is immutable after construction: every pattern is compiled
    up front, so resolving never fails and is safe to call from any thread.
    """

    __slots__ = ("_common", "_logger", "_scoped")

    def __init__(
        self,
        documents: Iterable[RuleDocument] = (),
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            documents: Rule documents to resolve against.
            logger: Optional logger for resolution diagnostics.

        Raises:
            PatternSyntaxError: If a scoped document carries a malformed glob.
        """
        ordered = sorted(documents, key=lambda doc: doc.registration_order)
        self._common: tuple[RuleDocument, ...] = tuple(
            doc for doc in ordered if doc.scope == RuleScope.COMMON
        )
        self._scoped: tuple[tuple[RuleDocument, tuple[CompiledPattern, ...]], ...] = (
            tuple(
                (doc, tuple(compile_pattern(pattern) for pattern in doc.patterns))
                for doc in ordered
                if doc.scope == RuleScope.SCOPED
            )
        )
        self._logger = logger

    @property
    def documents(self) -> tuple[RuleDocument, ...]:
        """All documents, in registration order."""
        scoped = tuple(doc for doc, _ in self._scoped)
        return tuple(
            sorted(self._common + scoped, key=lambda doc: doc.registration_order)
        )

    def __len__(self) -> int:
        return len(self._common) + len(self._scoped)

    def resolve_documents(self, path: str) -> list[RuleDocument]:
        """Return the documents that apply to path, in application order.

        Common documents come first by registration order. Scoped documents
        follow, sorted by the specificity of their best matching pattern
        (descending), then by registration order.

        Args:
            path: The edited file path, using ``/`` separators.

        Returns:
            Ordered list of applicable documents. A path that matches no
            scoped document yields only the common documents.
        """
        matching: list[tuple[RuleDocument, int]] = []

        for document, patterns in self._scoped:
            best: int | None = None
            for pattern in patterns:
                if pattern.matches(path) and (
                    best is None or pattern.specificity > best
                ):
                    best = pattern.specificity
            if best is not None:
                matching.append((document, best))

        matching.sort(key=_scoped_sort_key)
        result = [*self._common, *(document for document, _ in matching)]

        if self._logger is not None:
            self._logger.debug(
                "rules_resolved",
                path=path,
                common=len(self._common),
                scoped=[document.id for document, _ in matching],
            )

        return result

    def resolve(self, path: str) -> list[str]:
        """Return the payloads of the documents that apply to path, in order."""
        return [document.payload for document in self.resolve_documents(path)]
