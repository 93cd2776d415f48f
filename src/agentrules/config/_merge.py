"""ID-based merging of loaded definitions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from agentrules.exceptions import DuplicateIdError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable


def merge_by_id[T](
    items: Iterable[T],
    *,
    kind: str,
    get_id: Callable[[T], str],
    describe: Callable[[T], str],
) -> tuple[list[T], list[DuplicateIdError]]:
    """Merge definitions with ID-based deduplication.

    Items are processed in order. When several items share an ID the last one
    wins, but it keeps the position where the ID was first seen.

    Args:
        items: Definitions in source order.
        kind: Either "rule" or "hook", used in warnings.
        get_id: Returns the ID of an item.
        describe: Returns a short description of where an item came from.

    Returns:
        Tuple of (merged items in first-seen order, one DuplicateIdError per
        duplicated ID).
    """
    by_id: dict[str, T] = {}
    origins: dict[str, list[str]] = {}

    for item in items:
        item_id = get_id(item)
        by_id[item_id] = item
        origins.setdefault(item_id, []).append(describe(item))

    warnings = [
        DuplicateIdError(kind, item_id, sources)
        for item_id, sources in origins.items()
        if len(sources) > 1
    ]
    return list(by_id.values()), warnings
