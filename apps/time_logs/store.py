"""
Time log store.

TimeLogStore is the persistence interface the service layer depends on.
DjangoTimeLogStore implements it with the ORM; tests substitute an
in-memory store.

The store does not check for overlapping intervals. The database does:
creating a second open time log for the same user and task violates a
unique constraint, which surfaces here as ConflictError. Every other
database failure, timeouts included, is wrapped in StorageError.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager, nullcontext

from django.contrib.auth import get_user_model
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from apps.tasks.models import Task

from .aggregation import build_daily_report, sum_rounded_minutes
from .exceptions import ConflictError, NotFoundError, StorageError
from .models import TimeLog

logger = logging.getLogger(__name__)


class TimeLogStore(ABC):
    """Persistence of time log intervals."""

    def atomic(self):
        """Context manager grouping several writes into one unit."""
        return nullcontext()

    @abstractmethod
    def create(self, task_id, user_id, start=None):
        """Create an open time log; start defaults to now."""

    @abstractmethod
    def find_by_id(self, time_log_id):
        """Return the time log or None."""

    @abstractmethod
    def find_active(self, user_id, task_id):
        """Return the open time log for the pair, newest start first, or None."""

    @abstractmethod
    def find_active_for_task(self, task_id):
        """Return every open time log for the task, any user."""

    @abstractmethod
    def find_by_task(self, task_id):
        """Full history for a task, newest start first."""

    @abstractmethod
    def find_by_user(self, user_id):
        """Full history for a user, newest start first."""

    @abstractmethod
    def update(self, time_log_id, end):
        """Set the end of a time log. Raises NotFoundError if absent."""

    @abstractmethod
    def delete(self, time_log_id):
        """Hard delete. Returns True if a row was removed."""

    @abstractmethod
    def total_minutes_for_task(self, task_id):
        """Sum of closed intervals in minutes, each rounded to one decimal."""

    @abstractmethod
    def closed_between(self, range_start, range_end, user_id=None):
        """Closed time logs whose start falls within [range_start, range_end]."""

    @abstractmethod
    def user_display_names(self, user_ids):
        """Mapping of user id to display name for the ids that still exist."""

    @abstractmethod
    def task_titles(self, task_ids):
        """Mapping of task id to title for the ids that still exist."""

    def daily_aggregate(self, range_start, range_end, page, limit, user_id=None):
        """Grouped, paginated daily report over closed time logs."""
        time_logs = list(self.closed_between(range_start, range_end, user_id=user_id))
        user_ids = {time_log.user_id for time_log in time_logs}
        task_ids = {time_log.task_id for time_log in time_logs}

        report = build_daily_report(
            time_logs,
            page=page,
            limit=limit,
            user_names=self.user_display_names(user_ids),
            task_titles=self.task_titles(task_ids),
        )

        logger.debug(
            f'Retrieved {len(report.data)} daily time log entries for date range '
            f'{range_start.isoformat()} - {range_end.isoformat()}'
        )
        return report


@contextmanager
def storage_errors(message):
    """Log database failures and re-raise them as StorageError."""
    try:
        yield
    except DatabaseError as exc:
        logger.error(f'{message}: {exc}')
        raise StorageError(message) from exc


class DjangoTimeLogStore(TimeLogStore):
    """TimeLogStore backed by the TimeLog model."""

    def atomic(self):
        return transaction.atomic()

    def create(self, task_id, user_id, start=None):
        with storage_errors('Failed to create time log'):
            try:
                # Savepoint so a constraint violation leaves the outer
                # transaction usable
                with transaction.atomic():
                    time_log = TimeLog.objects.create(
                        task_id=task_id,
                        user_id=user_id,
                        start=start or timezone.now(),
                    )
            except IntegrityError as exc:
                # Only the open-interval constraint is a conflict; a missing
                # task or user is a storage failure
                if TimeLog.objects.filter(
                    user_id=user_id, task_id=task_id, end__isnull=True
                ).exists():
                    logger.warning(
                        f'Rejected second active time log for task: {task_id} by user: {user_id}'
                    )
                    raise ConflictError('There is already an active time log for this task') from exc
                logger.error(f'Failed to create time log for task: {task_id} by user: {user_id}: {exc}')
                raise StorageError('Failed to create time log') from exc

        logger.info(f'TimeLog created for task: {task_id} by user: {user_id}')
        return time_log

    def find_by_id(self, time_log_id):
        with storage_errors('Failed to find time log by id'):
            time_log = TimeLog.objects.filter(pk=time_log_id).first()

        if time_log is None:
            logger.debug(f'TimeLog not found for id: {time_log_id}')
        return time_log

    def find_active(self, user_id, task_id):
        with storage_errors('Failed to find active time log'):
            time_log = (
                TimeLog.objects
                .filter(user_id=user_id, task_id=task_id, end__isnull=True)
                .order_by('-start')
                .first()
            )

        if time_log is None:
            logger.debug(f'No active time log found for user: {user_id} and task: {task_id}')
        return time_log

    def find_active_for_task(self, task_id):
        with storage_errors('Failed to find active time logs for task'):
            time_logs = list(
                TimeLog.objects
                .filter(task_id=task_id, end__isnull=True)
                .order_by('-start')
            )

        logger.debug(f'Found {len(time_logs)} active time logs for task: {task_id}')
        return time_logs

    def find_by_task(self, task_id):
        with storage_errors('Failed to find time logs by task'):
            time_logs = list(
                TimeLog.objects
                .filter(task_id=task_id)
                .select_related('user')
                .order_by('-start')
            )

        logger.debug(f'Found {len(time_logs)} time logs for task: {task_id}')
        return time_logs

    def find_by_user(self, user_id):
        with storage_errors('Failed to find time logs by user'):
            time_logs = list(
                TimeLog.objects
                .filter(user_id=user_id)
                .order_by('-start')
            )

        logger.debug(f'Found {len(time_logs)} time logs for user: {user_id}')
        return time_logs

    def update(self, time_log_id, end):
        with storage_errors('Failed to update time log'):
            time_log = TimeLog.objects.filter(pk=time_log_id).first()
            if time_log is None:
                logger.debug(f'TimeLog not found for update with id: {time_log_id}')
                raise NotFoundError('TimeLog not found')

            time_log.end = end
            time_log.save(update_fields=['end', 'updated_at'])

        logger.info(f'TimeLog updated: {time_log_id}')
        return time_log

    def delete(self, time_log_id):
        with storage_errors('Failed to delete time log'):
            deleted, _ = TimeLog.objects.filter(pk=time_log_id).delete()

        if deleted:
            logger.info(f'TimeLog deleted with id: {time_log_id}')
        else:
            logger.debug(f'TimeLog not found for deletion with id: {time_log_id}')
        return bool(deleted)

    def total_minutes_for_task(self, task_id):
        with storage_errors('Failed to calculate total time spent on task'):
            spans = list(
                TimeLog.objects
                .filter(task_id=task_id, end__isnull=False)
                .values_list('start', 'end')
            )

        total = sum_rounded_minutes(spans)
        logger.debug(f'Total time spent on task {task_id}: {total} minutes')
        return total

    def closed_between(self, range_start, range_end, user_id=None):
        with storage_errors('Failed to get daily time logs by date range'):
            queryset = TimeLog.objects.filter(
                end__isnull=False,
                start__gte=range_start,
                start__lte=range_end,
            )
            if user_id is not None:
                queryset = queryset.filter(user_id=user_id)
            return list(queryset.only('id', 'task', 'user', 'start', 'end'))

    def user_display_names(self, user_ids):
        User = get_user_model()
        with storage_errors('Failed to look up users for time report'):
            rows = User.objects.filter(pk__in=user_ids).values('pk', 'first_name', 'last_name')
            return {
                row['pk']: f"{row['first_name']} {row['last_name']}".strip()
                for row in rows
            }

    def task_titles(self, task_ids):
        with storage_errors('Failed to look up tasks for time report'):
            return dict(Task.objects.filter(pk__in=task_ids).values_list('pk', 'title'))
