"""Tests for the ORM-backed time log store."""
from datetime import datetime, timedelta, timezone as dt_timezone
from unittest import mock

from django.db import OperationalError
from django.test import TestCase, TransactionTestCase

from apps.accounts.models import User
from apps.tasks.models import Task
from apps.time_logs.exceptions import ConflictError, NotFoundError, StorageError
from apps.time_logs.models import TimeLog
from apps.time_logs.store import DjangoTimeLogStore

UTC = dt_timezone.utc
DAY = datetime(2024, 1, 1, tzinfo=UTC)


class StoreTestBase(TestCase):

    def setUp(self):
        self.store = DjangoTimeLogStore()
        self.alice = User.objects.create_user(
            email='alice@example.com', password='pass', first_name='Alice', last_name='Smith'
        )
        self.bob = User.objects.create_user(
            email='bob@example.com', password='pass', first_name='Bob', last_name='Jones'
        )
        self.task = Task.objects.create(title='Write report', created_by=self.alice)
        self.other_task = Task.objects.create(title='Review code', created_by=self.alice)

    def closed(self, user, task, start, minutes):
        return TimeLog.objects.create(
            task=task, user=user, start=start, end=start + timedelta(minutes=minutes)
        )


class CreateAndFindTests(StoreTestBase):

    def test_create_open_time_log(self):
        time_log = self.store.create(self.task.pk, self.alice.pk, start=DAY)

        self.assertIsNotNone(time_log.pk)
        self.assertIsNone(time_log.end)
        self.assertEqual(self.store.find_by_id(time_log.pk), time_log)
        self.assertEqual(self.store.find_active(self.alice.pk, self.task.pk), time_log)

    def test_find_missing(self):
        self.assertIsNone(self.store.find_by_id(12345))
        self.assertIsNone(self.store.find_active(self.alice.pk, self.task.pk))

    def test_find_active_for_task_any_user(self):
        self.store.create(self.task.pk, self.alice.pk, start=DAY)
        self.store.create(self.task.pk, self.bob.pk, start=DAY)
        self.store.create(self.other_task.pk, self.bob.pk, start=DAY)

        active = self.store.find_active_for_task(self.task.pk)

        self.assertEqual({t.user_id for t in active}, {self.alice.pk, self.bob.pk})

    def test_history_newest_first(self):
        older = self.closed(self.alice, self.task, DAY, 10)
        newer = self.closed(self.bob, self.task, DAY + timedelta(hours=2), 10)

        self.assertEqual(self.store.find_by_task(self.task.pk), [newer, older])
        self.assertEqual(self.store.find_by_user(self.alice.pk), [older])


class ConstraintTests(StoreTestBase):

    def test_second_open_time_log_conflicts(self):
        self.store.create(self.task.pk, self.alice.pk, start=DAY)

        with self.assertRaises(ConflictError):
            self.store.create(self.task.pk, self.alice.pk, start=DAY + timedelta(minutes=1))

        # The surrounding transaction is still usable
        self.assertEqual(
            TimeLog.objects.filter(task=self.task, user=self.alice, end__isnull=True).count(), 1
        )

    def test_closed_time_logs_do_not_block_new_one(self):
        self.closed(self.alice, self.task, DAY, 10)
        self.closed(self.alice, self.task, DAY + timedelta(hours=1), 10)

        self.store.create(self.task.pk, self.alice.pk, start=DAY + timedelta(hours=2))

        self.assertEqual(TimeLog.objects.filter(task=self.task, user=self.alice).count(), 3)


class UpdateAndDeleteTests(StoreTestBase):

    def test_update_sets_end(self):
        time_log = self.store.create(self.task.pk, self.alice.pk, start=DAY)

        self.store.update(time_log.pk, end=DAY + timedelta(minutes=20))

        time_log.refresh_from_db()
        self.assertEqual(time_log.end, DAY + timedelta(minutes=20))

    def test_update_missing(self):
        with self.assertRaises(NotFoundError):
            self.store.update(12345, end=DAY)

    def test_delete(self):
        time_log = self.store.create(self.task.pk, self.alice.pk, start=DAY)

        self.assertTrue(self.store.delete(time_log.pk))
        self.assertFalse(self.store.delete(time_log.pk))
        self.assertFalse(TimeLog.objects.filter(pk=time_log.pk).exists())


class StorageErrorTests(StoreTestBase):

    def test_database_failure_becomes_storage_error(self):
        with mock.patch.object(
            TimeLog.objects, 'filter', side_effect=OperationalError('canceling statement due to statement timeout')
        ):
            with self.assertRaises(StorageError) as ctx:
                self.store.find_active(self.alice.pk, self.task.pk)

        self.assertEqual(ctx.exception.kind, 'StorageError')
        self.assertEqual(ctx.exception.status_code, 503)

    def test_failed_create_is_storage_error(self):
        with mock.patch.object(
            TimeLog.objects, 'create', side_effect=OperationalError('database is locked')
        ):
            with self.assertRaises(StorageError):
                self.store.create(self.task.pk, self.alice.pk)


class TotalMinutesTests(StoreTestBase):

    def test_sums_closed_intervals_only(self):
        self.closed(self.alice, self.task, DAY, 30)
        self.closed(self.bob, self.task, DAY, 45)
        self.closed(self.alice, self.other_task, DAY, 99)
        self.store.create(self.task.pk, self.alice.pk, start=DAY + timedelta(hours=3))

        self.assertEqual(self.store.total_minutes_for_task(self.task.pk), 75.0)

    def test_each_interval_rounded_before_summing(self):
        TimeLog.objects.create(task=self.task, user=self.alice, start=DAY, end=DAY + timedelta(seconds=10))
        TimeLog.objects.create(
            task=self.task, user=self.bob, start=DAY, end=DAY + timedelta(seconds=10)
        )

        self.assertEqual(self.store.total_minutes_for_task(self.task.pk), 0.4)

    def test_no_time_logs(self):
        self.assertEqual(self.store.total_minutes_for_task(self.task.pk), 0.0)


class DailyAggregateTests(StoreTestBase):

    def setUp(self):
        super().setUp()
        self.range_start = DAY
        self.range_end = datetime(2024, 1, 1, 23, 59, 59, 999000, tzinfo=UTC)

    def aggregate(self, **kwargs):
        return self.store.daily_aggregate(self.range_start, self.range_end, 1, 10, **kwargs)

    def test_rollup(self):
        self.closed(self.alice, self.task, DAY + timedelta(hours=9), 30)
        self.closed(self.alice, self.other_task, DAY + timedelta(hours=10), 15)
        self.closed(self.bob, self.task, DAY + timedelta(hours=9), 60)

        report = self.aggregate()

        self.assertEqual(
            [(row.user_name, row.total_minutes, row.task_count) for row in report.data],
            [('Alice Smith', 45.0, 2), ('Bob Jones', 60.0, 1)],
        )
        self.assertEqual(report.data[0].time_logs[0].task_title, 'Write report')
        self.assertEqual(report.metrics.total_minutes, 105.0)
        self.assertEqual(report.metrics.total_sessions, 3)

    def test_range_boundaries(self):
        self.closed(self.alice, self.task, DAY, 5)
        self.closed(self.alice, self.task, self.range_end - timedelta(seconds=1), 5)
        self.closed(self.alice, self.task, DAY - timedelta(minutes=1), 5)
        self.closed(self.alice, self.task, DAY + timedelta(days=1), 5)

        report = self.aggregate()

        self.assertEqual(report.metrics.total_sessions, 2)
        self.assertEqual(report.data[0].total_minutes, 10.0)

    def test_open_time_logs_excluded(self):
        self.closed(self.alice, self.task, DAY + timedelta(hours=9), 30)
        self.store.create(self.task.pk, self.bob.pk, start=DAY + timedelta(hours=10))

        report = self.aggregate()

        self.assertEqual(report.metrics.total_users, 1)

    def test_user_filter(self):
        self.closed(self.alice, self.task, DAY + timedelta(hours=9), 30)
        self.closed(self.bob, self.task, DAY + timedelta(hours=9), 60)

        report = self.aggregate(user_id=self.bob.pk)

        self.assertEqual([row.user_id for row in report.data], [self.bob.pk])

    def test_deleted_task_keeps_minutes(self):
        self.closed(self.alice, self.task, DAY + timedelta(hours=9), 30)
        self.closed(self.alice, self.other_task, DAY + timedelta(hours=10), 20)
        other_task_id = self.other_task.pk
        self.other_task.delete()

        report = self.aggregate()
        alice = report.data[0]

        self.assertEqual(alice.total_minutes, 50.0)
        orphan = [row for row in alice.time_logs if row.task_id == other_task_id][0]
        self.assertEqual(orphan.task_title, '')
        self.assertEqual(orphan.minutes, 20.0)

    def test_empty_range(self):
        report = self.aggregate()

        self.assertEqual(report.data, [])
        self.assertEqual(report.pagination.total_items, 0)
        self.assertEqual(report.metrics.total_minutes, 0.0)


class MissingReferenceTests(TransactionTestCase):
    """Foreign key checks run at commit, so these need real transactions."""

    def setUp(self):
        self.store = DjangoTimeLogStore()
        self.alice = User.objects.create_user(email='alice@example.com', password='pass')
        self.task = Task.objects.create(title='Write report', created_by=self.alice)

    def test_unknown_user_is_storage_error(self):
        with self.assertRaises(StorageError):
            self.store.create(self.task.pk, 99999, start=DAY)

        self.assertFalse(TimeLog.objects.exists())

    def test_second_open_time_log_still_conflicts(self):
        self.store.create(self.task.pk, self.alice.pk, start=DAY)

        with self.assertRaises(ConflictError):
            self.store.create(self.task.pk, self.alice.pk, start=DAY + timedelta(minutes=1))
