import asyncio
import unittest
import uuid
from datetime import datetime, timedelta, timezone

from calendar_fakes import NOW, FakeStore, make_event, make_principal, make_report
from workspace_calendar.models.enums import (
    DeadlineFrequency,
    EventVisibility,
    ReportStatus,
    ResourceKind,
    WorkspaceRole,
    WorkspaceType,
)
from workspace_calendar.schemas.calendar import CalendarStats, EventFilters, ReportDeadlineStats
from workspace_calendar.schemas.lookups import UserLookup
from workspace_calendar.schemas.report import DeadlineConfig, ReportTemplateOut
from workspace_calendar.schemas.workspace import WorkspaceOut
from workspace_calendar.services.calendar_overview import (
    AggregationLimits,
    DateWindow,
    QueryContext,
    build_calendar_overview,
    build_my_events,
    build_upcoming_events,
)


class TestCalendarOverview(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.a = uuid.uuid4()
        self.b = uuid.uuid4()
        self.other_user = uuid.uuid4()
        self.store = FakeStore()
        self.store.workspaces = [WorkspaceOut(id=self.a, name="HQ"), WorkspaceOut(id=self.b, name="Branch")]

    def _owner(self):
        return make_principal(WorkspaceRole.owner, current=self.a, accessible=[self.a, self.b])

    async def test_owner_sees_deduplicated_events_from_every_workspace(self) -> None:
        e1 = make_event(self.a, self.other_user, title="All hands")
        e2 = make_event(self.b, self.other_user, title="1:1", visibility=EventVisibility.private)
        e3 = make_event(self.b, self.other_user, title="Launch", start=NOW + timedelta(days=1), end=NOW + timedelta(days=1))
        self.store.events[self.a] = [e1]
        self.store.events[self.b] = [e1, e2, e3]

        ctx = QueryContext(principal=self._owner(), include_all_accessible=True, now=NOW)
        overview = await build_calendar_overview(ctx, self.store.sources())

        self.assertEqual(overview.scope, [self.a, self.b])
        # Owners hold blanket access, so the private event is visible too.
        self.assertEqual([i.event.id for i in overview.events], [e1.id, e2.id, e3.id])
        self.assertEqual(overview.partial_failures, [])

    async def test_owner_scenario_with_duplicate_event_private_event_and_templated_report(self) -> None:
        owner = self._owner()
        e1 = make_event(self.a, self.other_user, title="Quarter close")
        e2 = make_event(self.b, self.other_user, title="Private prep", visibility=EventVisibility.private)
        template = ReportTemplateOut(
            id=uuid.uuid4(),
            workspace_id=self.a,
            name="Monthly finance",
            category="financial",
            deadline_config=DeadlineConfig(frequency=DeadlineFrequency.monthly),
        )
        r1 = make_report(self.a, owner.user_id, status=ReportStatus.pending, template_id=template.id)
        submitted = make_report(self.b, self.other_user, status=ReportStatus.submitted)
        self.store.events[self.a] = [e1]
        self.store.events[self.b] = [e1, e2]
        self.store.templates[self.a] = [template]
        self.store.user_reports[self.a] = [r1]
        self.store.workspace_reports[self.b] = [submitted]

        ctx = QueryContext(principal=owner, include_all_accessible=True, now=NOW)
        overview = await build_calendar_overview(ctx, self.store.sources())

        self.assertEqual([i.event.id for i in overview.events], [e1.id, e2.id])
        self.assertEqual([i.id for i in overview.report_items], [r1.id, submitted.id])
        first = overview.report_items[0]
        self.assertEqual(first.status, "pending")
        self.assertEqual(first.type, "financial")
        self.assertEqual(first.due_date, datetime(2024, 2, 15, 9, 0, tzinfo=timezone.utc))

    async def test_sub_workspace_member_keeps_rows_read_through_the_parent(self) -> None:
        parent, sub = uuid.uuid4(), uuid.uuid4()
        self.store.workspaces = [
            WorkspaceOut(id=sub, name="North", workspace_type=WorkspaceType.sub, parent_workspace_id=parent)
        ]
        member = make_principal(WorkspaceRole.member, current=sub, data_source=parent)
        draft = make_report(parent, member.user_id)
        self.store.user_reports[sub] = [draft]
        self.store.events[sub] = [make_event(parent, self.other_user)]

        ctx = QueryContext(principal=member, now=NOW)
        overview = await build_calendar_overview(ctx, self.store.sources())

        self.assertEqual(overview.scope, [sub])
        self.assertEqual(len(overview.events), 1)
        self.assertEqual([i.id for i in overview.report_items], [draft.id])
        self.assertTrue(overview.report_items[0].can_submit)

    async def test_member_with_private_event_of_someone_else(self) -> None:
        e1 = make_event(self.a, self.other_user)
        e2 = make_event(self.a, self.other_user, visibility=EventVisibility.private)
        self.store.events[self.a] = [e1, e2]
        member = make_principal(WorkspaceRole.member, current=self.a)

        ctx = QueryContext(principal=member, include_all_accessible=True, now=NOW)
        overview = await build_calendar_overview(ctx, self.store.sources())

        self.assertEqual(overview.scope, [self.a])
        self.assertEqual([i.event.id for i in overview.events], [e1.id])
        self.assertNotIn(("events", self.b), self.store.calls)

    async def test_stats_are_summed_across_workspaces(self) -> None:
        self.store.stats[self.a] = CalendarStats(today_events=2)
        self.store.stats[self.b] = CalendarStats(today_events=3)
        self.store.report_stats[self.a] = ReportDeadlineStats(overdue=1)
        self.store.report_stats[self.b] = ReportDeadlineStats(overdue=4)

        ctx = QueryContext(principal=self._owner(), include_all_accessible=True, now=NOW)
        overview = await build_calendar_overview(ctx, self.store.sources())

        self.assertEqual(overview.stats.today_events, 5)
        self.assertEqual(overview.report_stats.overdue, 5)

    async def test_failed_workspace_is_reported_and_others_still_count(self) -> None:
        self.store.events[self.a] = [make_event(self.a, self.other_user)]
        self.store.stats[self.a] = CalendarStats(today_events=2)
        self.store.broken.add(self.b)

        ctx = QueryContext(principal=self._owner(), include_all_accessible=True, now=NOW)
        with self.assertLogs("workspace_calendar", level="WARNING"):
            overview = await build_calendar_overview(ctx, self.store.sources())

        self.assertEqual(len(overview.events), 1)
        self.assertEqual(overview.stats.today_events, 2)
        self.assertEqual(overview.partial_failures, [self.b])
        self.assertIn(ResourceKind.events, {f.resource for f in overview.failures})
        self.assertTrue(all(f.workspace_id == self.b for f in overview.failures))

    async def test_events_outside_the_window_are_not_returned(self) -> None:
        inside = make_event(self.a, self.other_user)
        outside = make_event(
            self.a, self.other_user, start=NOW + timedelta(days=90), end=NOW + timedelta(days=91)
        )
        self.store.events[self.a] = [inside, outside]

        window = DateWindow(start=NOW - timedelta(days=1), end=NOW + timedelta(days=30))
        ctx = QueryContext(principal=self._owner(), date_window=window, now=NOW)
        overview = await build_calendar_overview(ctx, self.store.sources())

        self.assertEqual([i.event.id for i in overview.events], [inside.id])

    async def test_filters_apply_after_access(self) -> None:
        self.store.events[self.a] = [
            make_event(self.a, self.other_user, title="Quarterly review"),
            make_event(self.a, self.other_user, title="Standup"),
        ]
        ctx = QueryContext(principal=self._owner(), filters=EventFilters(search="review"), now=NOW)
        overview = await build_calendar_overview(ctx, self.store.sources())
        self.assertEqual([i.event.title for i in overview.events], ["Quarterly review"])

    async def test_report_list_puts_own_reports_first_and_drops_out_of_scope(self) -> None:
        owner = self._owner()
        own = make_report(self.a, owner.user_id, status=ReportStatus.pending)
        submitted = make_report(self.b, self.other_user, status=ReportStatus.submitted)
        stray = make_report(uuid.uuid4(), self.other_user, status=ReportStatus.submitted)
        self.store.user_reports[self.a] = [own]
        self.store.workspace_reports[self.b] = [submitted, own, stray]
        self.store.users[self.b] = [UserLookup(id=self.other_user, full_name="Sam Lee")]

        ctx = QueryContext(principal=owner, include_all_accessible=True, now=NOW)
        overview = await build_calendar_overview(ctx, self.store.sources())

        self.assertEqual([i.id for i in overview.report_items], [own.id, submitted.id])
        self.assertEqual(overview.report_items[1].submitted_by, "Sam Lee")

    async def test_workspace_reports_need_deadline_management(self) -> None:
        member = make_principal(WorkspaceRole.member, current=self.a)
        self.store.workspace_reports[self.a] = [make_report(self.a, self.other_user, status=ReportStatus.submitted)]

        ctx = QueryContext(principal=member, now=NOW)
        overview = await build_calendar_overview(ctx, self.store.sources())

        self.assertEqual(overview.report_items, [])
        self.assertNotIn(("workspace_reports", self.a), self.store.calls)

    async def test_report_items_are_truncated(self) -> None:
        owner = self._owner()
        self.store.user_reports[self.a] = [make_report(self.a, owner.user_id) for _ in range(5)]

        ctx = QueryContext(principal=owner, now=NOW)
        overview = await build_calendar_overview(ctx, self.store.sources(), AggregationLimits(report_items=3))

        self.assertEqual(len(overview.report_items), 3)

    async def test_lookups_are_merged(self) -> None:
        shared = UserLookup(id=uuid.uuid4(), full_name="Ana")
        self.store.users[self.a] = [shared]
        self.store.users[self.b] = [shared, UserLookup(id=uuid.uuid4(), full_name="Bo")]

        ctx = QueryContext(principal=self._owner(), include_all_accessible=True, now=NOW)
        overview = await build_calendar_overview(ctx, self.store.sources())

        self.assertEqual([u.full_name for u in overview.users], ["Ana", "Bo"])

    async def test_empty_scope_yields_empty_overview(self) -> None:
        self.store.workspaces = []
        ctx = QueryContext(principal=self._owner(), include_all_accessible=True, now=NOW)
        overview = await build_calendar_overview(ctx, self.store.sources())

        self.assertEqual(overview.scope, [])
        self.assertEqual(overview.events, [])
        self.assertEqual(overview.stats, CalendarStats())
        self.assertEqual(self.store.calls, [])

    async def test_cancellation_propagates_out_of_the_overview(self) -> None:
        started = asyncio.Event()

        class SlowStore(FakeStore):
            async def get_events(self, workspace_id, start, end, filters=None, role=None):
                started.set()
                await asyncio.sleep(10)

        store = SlowStore()
        store.workspaces = self.store.workspaces
        ctx = QueryContext(principal=self._owner(), include_all_accessible=True, now=NOW)

        task = asyncio.create_task(build_calendar_overview(ctx, store.sources()))
        await started.wait()
        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task


class TestEventLists(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.a = uuid.uuid4()
        self.b = uuid.uuid4()
        self.store = FakeStore()
        self.store.workspaces = [WorkspaceOut(id=self.a, name="HQ"), WorkspaceOut(id=self.b, name="Branch")]
        self.owner = make_principal(WorkspaceRole.owner, current=self.a, accessible=[self.a, self.b])

    async def test_upcoming_events_are_sorted_and_truncated(self) -> None:
        author = uuid.uuid4()
        later = make_event(self.a, author, start=NOW + timedelta(days=3), end=NOW + timedelta(days=3))
        sooner = make_event(self.b, author, start=NOW + timedelta(days=1), end=NOW + timedelta(days=1))
        soonest = make_event(self.b, author, start=NOW, end=NOW)
        self.store.events[self.a] = [later]
        self.store.events[self.b] = [sooner, soonest]

        ctx = QueryContext(principal=self.owner, include_all_accessible=True, now=NOW)
        result = await build_upcoming_events(ctx, self.store.sources(), AggregationLimits(upcoming_events=2))

        self.assertEqual([i.event.id for i in result.events], [soonest.id, sooner.id])

    async def test_my_events_only_counts_events_from_their_own_workspace(self) -> None:
        mine_a = make_event(self.a, self.owner.user_id, title="mine A")
        mine_b = make_event(self.b, self.owner.user_id, title="mine B")
        theirs = make_event(self.a, uuid.uuid4(), title="theirs")
        # A sub workspace reading through A would hand back A's events too.
        self.store.events[self.a] = [mine_a, theirs]
        self.store.events[self.b] = [mine_a, mine_b]

        ctx = QueryContext(principal=self.owner, include_all_accessible=True, now=NOW)
        result = await build_my_events(ctx, self.store.sources())

        self.assertEqual({i.event.title for i in result.events}, {"mine A", "mine B"})
        self.assertEqual(len(result.events), 2)


if __name__ == "__main__":
    unittest.main()
