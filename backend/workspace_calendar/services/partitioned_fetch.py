from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, Iterable, TypeVar

from workspace_calendar.models.enums import ResourceKind


T = TypeVar("T")

PartitionFetch = Callable[[uuid.UUID], Awaitable[T]]

logger = logging.getLogger(__name__)


class PartitionFetchError(Exception):
    """One workspace's fetch failed; recorded, never raised out of the fan-out."""

    def __init__(self, *, workspace_id: uuid.UUID, resource: ResourceKind, cause: BaseException):
        message = str(cause) or type(cause).__name__
        super().__init__(f"{resource.value} fetch failed for workspace {workspace_id}: {message}")
        self.workspace_id = workspace_id
        self.resource = resource
        self.cause = cause
        self.message = message


@dataclass
class PartitionResults(Generic[T]):
    """Per-workspace results of one resource kind, keyed in scope order."""

    resource: ResourceKind
    workspace_ids: list[uuid.UUID]
    results: dict[uuid.UUID, T] = field(default_factory=dict)
    failures: dict[uuid.UUID, PartitionFetchError] = field(default_factory=dict)

    def ordered(self) -> list[tuple[uuid.UUID, T]]:
        return [(wid, self.results[wid]) for wid in self.workspace_ids if wid in self.results]


async def fetch_partitions(
    fetch: PartitionFetch[T],
    workspace_ids: Iterable[uuid.UUID],
    *,
    resource: ResourceKind,
    limiter: asyncio.Semaphore | None = None,
    timeout: float | None = None,
) -> PartitionResults[T]:
    """
    Run `fetch` once per workspace id, concurrently.

    - A failure or timeout on one workspace is recorded in `failures` and
      does not affect the others.
    - `limiter` caps how many fetches run at once; share one semaphore
      across resource kinds to bound the whole query.
    - Cancellation of the caller cancels every in-flight fetch and
      propagates; nothing partial is returned.
    """
    ordered_ids: list[uuid.UUID] = []
    for workspace_id in workspace_ids:
        if workspace_id not in ordered_ids:
            ordered_ids.append(workspace_id)

    outcome: PartitionResults[T] = PartitionResults(resource=resource, workspace_ids=ordered_ids)
    if not ordered_ids:
        return outcome

    async def _attempt(workspace_id: uuid.UUID) -> None:
        try:
            if limiter is None:
                items = await _with_timeout(fetch(workspace_id), timeout)
            else:
                async with limiter:
                    items = await _with_timeout(fetch(workspace_id), timeout)
        except Exception as exc:
            error = PartitionFetchError(workspace_id=workspace_id, resource=resource, cause=exc)
            logger.warning("Partition fetch failed: %s", error)
            outcome.failures[workspace_id] = error
            return
        outcome.results[workspace_id] = items

    await asyncio.gather(*(_attempt(workspace_id) for workspace_id in ordered_ids))
    return outcome


async def _with_timeout(awaitable: Awaitable[T], timeout: float | None) -> T:
    if timeout is None:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout=timeout)
