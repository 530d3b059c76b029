import asyncio
import unittest
import uuid

from workspace_calendar.models.enums import ResourceKind
from workspace_calendar.services.partitioned_fetch import PartitionFetchError, fetch_partitions


class TestFetchPartitions(unittest.IsolatedAsyncioTestCase):
    async def test_failure_in_one_workspace_does_not_affect_others(self) -> None:
        a, b, c = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()

        async def fetch(workspace_id):
            if workspace_id == b:
                raise ConnectionError("db down")
            return [str(workspace_id)]

        with self.assertLogs("workspace_calendar.services.partitioned_fetch", level="WARNING"):
            outcome = await fetch_partitions(fetch, [a, b, c], resource=ResourceKind.events)

        self.assertEqual(outcome.ordered(), [(a, [str(a)]), (c, [str(c)])])
        self.assertEqual(list(outcome.failures), [b])
        error = outcome.failures[b]
        self.assertIsInstance(error, PartitionFetchError)
        self.assertEqual(error.resource, ResourceKind.events)
        self.assertEqual(error.message, "db down")
        self.assertIsInstance(error.cause, ConnectionError)

    async def test_results_follow_scope_order_not_completion_order(self) -> None:
        ids = [uuid.uuid4() for _ in range(4)]
        delays = {ids[0]: 0.03, ids[1]: 0.0, ids[2]: 0.02, ids[3]: 0.01}

        async def fetch(workspace_id):
            await asyncio.sleep(delays[workspace_id])
            return workspace_id

        outcome = await fetch_partitions(fetch, ids, resource=ResourceKind.events)
        self.assertEqual([wid for wid, _ in outcome.ordered()], ids)

    async def test_timeout_is_recorded_as_failure(self) -> None:
        fast, slow = uuid.uuid4(), uuid.uuid4()

        async def fetch(workspace_id):
            if workspace_id == slow:
                await asyncio.sleep(1)
            return "ok"

        with self.assertLogs("workspace_calendar.services.partitioned_fetch", level="WARNING"):
            outcome = await fetch_partitions(fetch, [fast, slow], resource=ResourceKind.users, timeout=0.05)

        self.assertEqual(outcome.results, {fast: "ok"})
        self.assertIsInstance(outcome.failures[slow].cause, asyncio.TimeoutError)

    async def test_limiter_caps_concurrent_fetches(self) -> None:
        running = 0
        peak = 0

        async def fetch(workspace_id):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return workspace_id

        ids = [uuid.uuid4() for _ in range(6)]
        outcome = await fetch_partitions(fetch, ids, resource=ResourceKind.events, limiter=asyncio.Semaphore(2))

        self.assertEqual(len(outcome.results), 6)
        self.assertLessEqual(peak, 2)

    async def test_cancellation_propagates(self) -> None:
        started = asyncio.Event()

        async def fetch(workspace_id):
            started.set()
            await asyncio.sleep(10)

        task = asyncio.create_task(fetch_partitions(fetch, [uuid.uuid4()], resource=ResourceKind.events))
        await started.wait()
        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task

    async def test_empty_scope_returns_empty_results(self) -> None:
        async def fetch(workspace_id):
            raise AssertionError("not called")

        outcome = await fetch_partitions(fetch, [], resource=ResourceKind.events)
        self.assertEqual(outcome.ordered(), [])
        self.assertEqual(outcome.failures, {})

    async def test_duplicate_ids_fetch_once(self) -> None:
        a = uuid.uuid4()
        calls = []

        async def fetch(workspace_id):
            calls.append(workspace_id)
            return workspace_id

        outcome = await fetch_partitions(fetch, [a, a], resource=ResourceKind.events)
        self.assertEqual(calls, [a])
        self.assertEqual(outcome.workspace_ids, [a])


if __name__ == "__main__":
    unittest.main()
