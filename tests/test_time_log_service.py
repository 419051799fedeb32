"""Tests for TimeLogService over the in-memory store."""
import random
from datetime import date, datetime, timedelta, timezone as dt_timezone
from unittest import mock

from django.test import SimpleTestCase

from apps.time_logs.exceptions import BadRequestError, ConflictError, NotFoundError
from apps.time_logs.services import TimeLogService, day_bounds

from .fakes import FixedClock, InMemoryTimeLogStore

UTC = dt_timezone.utc
NOW = datetime(2024, 3, 4, 9, 0, tzinfo=UTC)
ALICE, BOB = 1, 2
TASK_A, TASK_B = 10, 20


class TimeLogServiceTestBase(SimpleTestCase):

    def setUp(self):
        self.clock = FixedClock(NOW)
        self.store = InMemoryTimeLogStore()
        self.service = TimeLogService(self.store, clock=self.clock, max_limit=100)


class StartTimeLogTests(TimeLogServiceTestBase):

    def test_opens_time_log_at_clock_time(self):
        time_log = self.service.start_time_log(ALICE, TASK_A)

        self.assertEqual(time_log.user_id, ALICE)
        self.assertEqual(time_log.task_id, TASK_A)
        self.assertEqual(time_log.start, NOW)
        self.assertIsNone(time_log.end)
        self.assertEqual(self.service.get_active_time_log(ALICE, TASK_A), time_log)

    def test_second_start_for_same_pair_conflicts(self):
        self.service.start_time_log(ALICE, TASK_A)

        with self.assertRaises(ConflictError) as ctx:
            self.service.start_time_log(ALICE, TASK_A)

        self.assertEqual(ctx.exception.kind, 'Conflict')
        self.assertEqual(self.store.open_counts(), {(ALICE, TASK_A): 1})

    def test_other_pairs_are_independent(self):
        self.service.start_time_log(ALICE, TASK_A)
        self.service.start_time_log(ALICE, TASK_B)
        self.service.start_time_log(BOB, TASK_A)

        self.assertEqual(len(self.store.open_counts()), 3)

    def test_start_after_end_opens_new_interval(self):
        first = self.service.start_time_log(ALICE, TASK_A)
        self.clock.advance(minutes=5)
        self.service.end_time_log(first.pk)

        second = self.service.start_time_log(ALICE, TASK_A)

        self.assertNotEqual(first.pk, second.pk)
        self.assertEqual(len(self.service.time_logs_for_task(TASK_A)), 2)


class EndTimeLogTests(TimeLogServiceTestBase):

    def test_sets_end_to_clock_time(self):
        time_log = self.service.start_time_log(ALICE, TASK_A)
        self.clock.advance(minutes=25)

        ended = self.service.end_time_log(time_log.pk)

        self.assertEqual(ended.end, NOW + timedelta(minutes=25))
        self.assertIsNone(self.service.get_active_time_log(ALICE, TASK_A))

    def test_missing_time_log(self):
        with self.assertRaises(NotFoundError):
            self.service.end_time_log(999)

    def test_already_ended(self):
        time_log = self.service.start_time_log(ALICE, TASK_A)
        self.clock.advance(minutes=1)
        self.service.end_time_log(time_log.pk)

        with self.assertRaises(ConflictError):
            self.service.end_time_log(time_log.pk)

    def test_end_stays_after_start_on_same_tick(self):
        time_log = self.service.start_time_log(ALICE, TASK_A)

        ended = self.service.end_time_log(time_log.pk)

        self.assertGreater(ended.end, ended.start)

    def test_end_active_closes_running_log(self):
        time_log = self.service.start_time_log(ALICE, TASK_A)
        self.clock.advance(minutes=3)

        ended = self.service.end_active_time_log(ALICE, TASK_A)

        self.assertEqual(ended.pk, time_log.pk)
        self.assertIsNotNone(ended.end)

    def test_end_active_with_nothing_running_is_noop(self):
        self.assertIsNone(self.service.end_active_time_log(ALICE, TASK_A))

        time_log = self.service.start_time_log(ALICE, TASK_A)
        self.clock.advance(minutes=3)
        self.service.end_active_time_log(ALICE, TASK_A)
        self.assertIsNone(self.service.end_active_time_log(ALICE, TASK_A))
        self.assertEqual(self.store.find_by_id(time_log.pk).end, NOW + timedelta(minutes=3))


class EndAllActiveForTaskTests(TimeLogServiceTestBase):

    def test_closes_every_user_on_the_task(self):
        self.service.start_time_log(ALICE, TASK_A)
        self.service.start_time_log(BOB, TASK_A)
        self.service.start_time_log(ALICE, TASK_B)
        self.clock.advance(minutes=10)

        closed = self.service.end_all_active_for_task(TASK_A)

        self.assertEqual(closed, 2)
        self.assertEqual(self.store.open_counts(), {(ALICE, TASK_B): 1})

    def test_nothing_running(self):
        self.assertEqual(self.service.end_all_active_for_task(TASK_A), 0)


class DeleteTimeLogTests(TimeLogServiceTestBase):

    def test_deletes(self):
        time_log = self.service.start_time_log(ALICE, TASK_A)

        self.assertTrue(self.service.delete_time_log(time_log.pk))
        self.assertIsNone(self.store.find_by_id(time_log.pk))

    def test_missing(self):
        with self.assertRaises(NotFoundError):
            self.service.delete_time_log(999)


class TotalTimeSpentTests(TimeLogServiceTestBase):

    def test_sums_closed_intervals(self):
        self.store.add_closed(TASK_A, ALICE, NOW, NOW + timedelta(minutes=30))
        self.store.add_closed(TASK_A, BOB, NOW, NOW + timedelta(minutes=45))
        self.store.add_closed(TASK_B, ALICE, NOW, NOW + timedelta(minutes=99))

        self.assertEqual(self.service.total_time_spent(TASK_A), 75.0)

    def test_running_interval_not_counted(self):
        self.store.add_closed(TASK_A, ALICE, NOW, NOW + timedelta(minutes=30))
        self.service.start_time_log(BOB, TASK_A)

        self.assertEqual(self.service.total_time_spent(TASK_A), 30.0)

    def test_no_time_logs(self):
        self.assertEqual(self.service.total_time_spent(TASK_A), 0.0)


class HistoryTests(TimeLogServiceTestBase):

    def test_newest_first(self):
        older = self.store.add_closed(TASK_A, ALICE, NOW, NOW + timedelta(minutes=5))
        newer = self.store.add_closed(
            TASK_B, ALICE, NOW + timedelta(hours=1), NOW + timedelta(hours=2)
        )

        self.assertEqual(
            [t.pk for t in self.service.time_logs_for_user(ALICE)],
            [newer.pk, older.pk],
        )
        self.assertEqual(self.service.time_logs_for_user(BOB), [])


class DailyReportValidationTests(TimeLogServiceTestBase):

    def test_missing_dates(self):
        with self.assertRaises(BadRequestError):
            self.service.daily_report(None, date(2024, 1, 1))
        with self.assertRaises(BadRequestError):
            self.service.daily_report(date(2024, 1, 1), '2024-01-02')

    def test_start_after_end(self):
        with self.assertRaises(BadRequestError) as ctx:
            self.service.daily_report(date(2024, 1, 2), date(2024, 1, 1))
        self.assertEqual(ctx.exception.status_code, 400)

    def test_page_below_one(self):
        with self.assertRaises(BadRequestError):
            self.service.daily_report(date(2024, 1, 1), date(2024, 1, 1), page=0)

    def test_limit_out_of_range(self):
        with self.assertRaises(BadRequestError):
            self.service.daily_report(date(2024, 1, 1), date(2024, 1, 1), limit=0)
        with self.assertRaises(BadRequestError):
            self.service.daily_report(date(2024, 1, 1), date(2024, 1, 1), limit=101)

    def test_limit_at_maximum_is_accepted(self):
        report = self.service.daily_report(date(2024, 1, 1), date(2024, 1, 1), limit=100)
        self.assertEqual(report.pagination.items_per_page, 100)

    def test_range_widened_to_whole_utc_days(self):
        with mock.patch.object(self.store, 'daily_aggregate') as aggregate:
            self.service.daily_report(
                datetime(2024, 1, 1, 15, 30, tzinfo=UTC),
                date(2024, 1, 3),
                page=2,
                limit=5,
                user_id=ALICE,
            )

        aggregate.assert_called_once_with(
            datetime(2024, 1, 1, 0, 0, tzinfo=UTC),
            datetime(2024, 1, 3, 23, 59, 59, 999000, tzinfo=UTC),
            2,
            5,
            user_id=ALICE,
        )

    def test_same_day_range(self):
        start, end = day_bounds(date(2024, 1, 1), date(2024, 1, 1))

        self.assertEqual(start, datetime(2024, 1, 1, tzinfo=UTC))
        self.assertEqual(end, datetime(2024, 1, 1, 23, 59, 59, 999000, tzinfo=UTC))


class DailyReportTests(TimeLogServiceTestBase):

    def setUp(self):
        super().setUp()
        self.store.user_names = {ALICE: 'Alice Smith', BOB: 'Bob Jones'}
        self.store.titles = {TASK_A: 'Write report'}
        day = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)
        self.store.add_closed(TASK_A, ALICE, day, day + timedelta(minutes=30))
        self.store.add_closed(TASK_A, BOB, day, day + timedelta(minutes=60))
        self.store.add_closed(TASK_A, ALICE, day + timedelta(days=5), day + timedelta(days=5, minutes=5))

    def test_only_intervals_in_range(self):
        report = self.service.daily_report(date(2024, 1, 1), date(2024, 1, 1))

        self.assertEqual(report.metrics.total_minutes, 90.0)
        self.assertEqual([row.user_name for row in report.data], ['Alice Smith', 'Bob Jones'])

    def test_user_filter(self):
        report = self.service.daily_report(date(2024, 1, 1), date(2024, 1, 31), user_id=BOB)

        self.assertEqual([row.user_id for row in report.data], [BOB])
        self.assertEqual(report.metrics.total_users, 1)


class SingleActiveIntervalInvariantTests(TimeLogServiceTestBase):

    def test_random_operation_sequences(self):
        rng = random.Random(1234)
        users = [ALICE, BOB]
        tasks = [TASK_A, TASK_B]

        for _ in range(500):
            user_id = rng.choice(users)
            task_id = rng.choice(tasks)
            action = rng.choice(['start', 'end', 'end_all'])
            self.clock.advance(seconds=rng.randint(0, 90))

            if action == 'start':
                try:
                    self.service.start_time_log(user_id, task_id)
                except ConflictError:
                    pass
            elif action == 'end':
                self.service.end_active_time_log(user_id, task_id)
            else:
                self.service.end_all_active_for_task(task_id)

            for count in self.store.open_counts().values():
                self.assertLessEqual(count, 1)

        for time_log in self.store.rows.values():
            if time_log.end is not None:
                self.assertGreater(time_log.end, time_log.start)
