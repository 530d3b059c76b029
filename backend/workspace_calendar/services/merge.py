from __future__ import annotations

from typing import Any, Callable, Hashable, Iterable, Sequence, TypeVar

from workspace_calendar.services.partitioned_fetch import PartitionResults


T = TypeVar("T")


def _item_id(item: Any) -> Hashable:
    return item.id


def merge_unique(
    collections: Iterable[Iterable[T]],
    *,
    key: Callable[[T], Hashable] = _item_id,
) -> list[T]:
    """Flatten collections in order, keeping the first item seen for each key."""
    out: list[T] = []
    seen: set[Hashable] = set()
    for items in collections:
        for item in items:
            item_key = key(item)
            if item_key in seen:
                continue
            seen.add(item_key)
            out.append(item)
    return out


def merge_partitions(
    partitions: PartitionResults[Sequence[T]],
    *,
    key: Callable[[T], Hashable] = _item_id,
) -> list[T]:
    """
    Merge per-workspace results into one list.

    Workspaces are consumed in scope order, never completion order, so the
    output is reproducible. Failed workspaces contribute nothing.
    """
    return merge_unique((items for _, items in partitions.ordered()), key=key)
