"""
Service layer for time_logs app.

TimeLogService enforces the single-active-interval rule on top of a
TimeLogStore and validates report queries. One instance is built per
process in TimeLogsConfig.ready(); see apps.time_logs.get_time_log_service.

Services:
- start_time_log: Open a time log (Conflict if one is already running)
- end_time_log: Close a time log by id
- end_active_time_log: Close the running time log for a user and task, if any
- end_all_active_for_task: Close every running time log on a task
- total_time_spent: Minutes logged on a task
- daily_report: Paginated per-user, per-day report for a date range
"""

import logging
from datetime import date, datetime, time, timedelta
from datetime import timezone as dt_timezone

from django.utils import timezone

from .exceptions import BadRequestError, ConflictError, NotFoundError

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59, 999000)


def _as_utc(value):
    """Aware UTC datetime for a date (midnight) or datetime (naive = UTC)."""
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=dt_timezone.utc)
    if timezone.is_naive(value):
        return value.replace(tzinfo=dt_timezone.utc)
    return value.astimezone(dt_timezone.utc)


def day_bounds(range_start, range_end):
    """Widen a date range to whole UTC days: 00:00:00.000 to 23:59:59.999."""
    start_day = _as_utc(range_start).date()
    end_day = _as_utc(range_end).date()
    return (
        datetime.combine(start_day, time.min, tzinfo=dt_timezone.utc),
        datetime.combine(end_day, END_OF_DAY, tzinfo=dt_timezone.utc),
    )


class TimeLogService:
    """Lifecycle operations for time logs."""

    def __init__(self, store, clock=None, max_limit=100):
        self.store = store
        self.clock = clock or timezone.now
        self.max_limit = max_limit

    def atomic(self):
        return self.store.atomic()

    # =========================================================================
    # Lookups
    # =========================================================================

    def get_time_log(self, time_log_id):
        time_log = self.store.find_by_id(time_log_id)
        if time_log is None:
            raise NotFoundError('TimeLog not found')
        return time_log

    def get_active_time_log(self, user_id, task_id):
        logger.debug(f'Checking for active time log for user: {user_id} and task: {task_id}')
        return self.store.find_active(user_id, task_id)

    def time_logs_for_task(self, task_id):
        logger.debug(f'Fetching time logs for task: {task_id}')
        return self.store.find_by_task(task_id)

    def time_logs_for_user(self, user_id):
        logger.debug(f'Fetching time logs for user: {user_id}')
        return self.store.find_by_user(user_id)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start_time_log(self, user_id, task_id):
        """
        Open a time log for the user on the task.

        Raises:
            ConflictError: If the user already has a running time log on the task
        """
        if self.get_active_time_log(user_id, task_id) is not None:
            raise ConflictError('There is already an active time log for this task')

        logger.info(f'Starting time log for task: {task_id} by user: {user_id}')
        time_log = self.store.create(task_id, user_id, start=self.clock())
        logger.info(f'TimeLog started with ID: {time_log.pk}')
        return time_log

    def end_time_log(self, time_log_id):
        """
        Close a time log now.

        Raises:
            NotFoundError: If the time log does not exist
            ConflictError: If the time log has already ended
        """
        time_log = self.get_time_log(time_log_id)
        if time_log.end is not None:
            raise ConflictError('TimeLog has already ended')

        end = self.clock()
        if end <= time_log.start:
            # Keep end strictly after start when both land on the same tick
            end = time_log.start + timedelta(microseconds=1)

        logger.info(f'Ending time log: {time_log_id}')
        return self.store.update(time_log_id, end=end)

    def end_active_time_log(self, user_id, task_id):
        """Close the running time log for the pair; None if nothing is running."""
        active = self.get_active_time_log(user_id, task_id)
        if active is None:
            logger.debug(f'No active time log found to end for user: {user_id} and task: {task_id}')
            return None

        logger.info(f'Ending active time log for user: {user_id} and task: {task_id}')
        return self.end_time_log(active.pk)

    def end_all_active_for_task(self, task_id):
        """Close every running time log on the task. Returns the number closed."""
        with self.atomic():
            active = self.store.find_active_for_task(task_id)
            for time_log in active:
                self.end_time_log(time_log.pk)

        if active:
            logger.info(f'Ended {len(active)} active time logs for task: {task_id}')
        return len(active)

    def delete_time_log(self, time_log_id):
        """Administrative hard delete."""
        self.get_time_log(time_log_id)
        logger.info(f'Deleting time log: {time_log_id}')
        return self.store.delete(time_log_id)

    # =========================================================================
    # Reporting
    # =========================================================================

    def total_time_spent(self, task_id):
        logger.debug(f'Calculating total time spent on task: {task_id}')
        return self.store.total_minutes_for_task(task_id)

    def daily_report(self, range_start, range_end, page=1, limit=10, user_id=None):
        """
        Daily time report for a date range.

        Args:
            range_start: First day (date or datetime, inclusive)
            range_end: Last day (date or datetime, inclusive)
            page: 1-based page number
            limit: Rows per page (1 to max_limit)
            user_id: Optional user to restrict the report to

        Returns:
            DailyTimeLogReport

        Raises:
            BadRequestError: If the range or pagination is invalid
        """
        if not isinstance(range_start, date) or not isinstance(range_end, date):
            raise BadRequestError('Start date and end date are required')

        if _as_utc(range_start) > _as_utc(range_end):
            raise BadRequestError('Start date must be before end date')

        if page < 1:
            raise BadRequestError('Page number must be at least 1')

        if limit < 1 or limit > self.max_limit:
            raise BadRequestError(f'Limit must be between 1 and {self.max_limit}')

        start_of_day, end_of_day = day_bounds(range_start, range_end)

        logger.debug(
            f'Fetching daily time logs from {start_of_day.isoformat()} to {end_of_day.isoformat()}'
            + (f' for user: {user_id}' if user_id else '')
        )
        return self.store.daily_aggregate(start_of_day, end_of_day, page, limit, user_id=user_id)
