"""
Daily aggregation of time logs.

Turns closed time logs into a paginated per-user, per-day report plus
range-wide metrics. Works on any object exposing ``task_id``, ``user_id``,
``start`` and ``end``, so the ORM store and in-memory stores share it.

Grouping:
1. (UTC date of start, user, task): minutes summed, sessions counted
2. (UTC date, user): task rows attached, minutes summed across tasks

Rows sort by date descending, then user display name, then user id.
Minutes are rounded to one decimal only when they are output, halves to
even. Task totals (sum_rounded_minutes) round halves up instead.
"""

import math
from dataclasses import dataclass, field
from datetime import timezone as dt_timezone
from decimal import Decimal, ROUND_HALF_EVEN, ROUND_HALF_UP

ONE_DECIMAL = Decimal('0.1')


def round_minutes(value, rounding=ROUND_HALF_UP):
    """Round minutes to one decimal place, halves away from zero by default."""
    return float(Decimal(str(value)).quantize(ONE_DECIMAL, rounding=rounding))


def report_minutes(value):
    """Round minutes for the daily report, halves to even."""
    return round_minutes(value, rounding=ROUND_HALF_EVEN)


def duration_minutes(start, end):
    """Fractional minutes between two datetimes."""
    return (end - start).total_seconds() / 60


def sum_rounded_minutes(spans):
    """
    Sum (start, end) spans, rounding each span to one decimal first.

    Rounding happens per interval before summing so totals match the
    figures reported per session.
    """
    total = Decimal('0')
    for start, end in spans:
        total += Decimal(str(round_minutes(duration_minutes(start, end))))
    return float(total)


def utc_date(value):
    """Calendar date of a datetime in UTC."""
    return value.astimezone(dt_timezone.utc).date()


@dataclass
class TaskTimeBreakdown:
    task_id: int
    task_title: str
    minutes: float
    sessions: int

    def as_dict(self):
        return {
            'taskId': self.task_id,
            'taskTitle': self.task_title,
            'minutes': self.minutes,
            'sessions': self.sessions,
        }


@dataclass
class DailyTimeLogEntry:
    date: str
    user_id: int
    user_name: str
    total_minutes: float
    task_count: int
    time_logs: list = field(default_factory=list)

    def as_dict(self):
        return {
            'date': self.date,
            'userId': self.user_id,
            'userName': self.user_name,
            'totalMinutes': self.total_minutes,
            'taskCount': self.task_count,
            'timeLogs': [row.as_dict() for row in self.time_logs],
        }


@dataclass
class TimeLogMetrics:
    total_minutes: float = 0.0
    total_users: int = 0
    total_tasks: int = 0
    total_sessions: int = 0
    average_minutes_per_user: float = 0.0
    average_minutes_per_task: float = 0.0

    def as_dict(self):
        return {
            'totalMinutes': self.total_minutes,
            'totalUsers': self.total_users,
            'totalTasks': self.total_tasks,
            'totalSessions': self.total_sessions,
            'averageMinutesPerUser': self.average_minutes_per_user,
            'averageMinutesPerTask': self.average_minutes_per_task,
        }


@dataclass
class PaginationInfo:
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_previous_page: bool

    def as_dict(self):
        return {
            'currentPage': self.current_page,
            'totalPages': self.total_pages,
            'totalItems': self.total_items,
            'itemsPerPage': self.items_per_page,
            'hasNextPage': self.has_next_page,
            'hasPreviousPage': self.has_previous_page,
        }


@dataclass
class DailyTimeLogReport:
    data: list
    metrics: TimeLogMetrics
    pagination: PaginationInfo

    def as_dict(self):
        return {
            'data': [entry.as_dict() for entry in self.data],
            'metrics': self.metrics.as_dict(),
            'pagination': self.pagination.as_dict(),
        }


def _group_by_day(time_logs, user_names, task_titles):
    per_task = {}
    for time_log in time_logs:
        key = (utc_date(time_log.start), time_log.user_id, time_log.task_id)
        bucket = per_task.setdefault(key, [0.0, 0])
        bucket[0] += duration_minutes(time_log.start, time_log.end)
        bucket[1] += 1

    per_day = {}
    for (day, user_id, task_id), (minutes, sessions) in per_task.items():
        row = per_day.setdefault((day, user_id), {'minutes': 0.0, 'tasks': []})
        row['minutes'] += minutes
        row['tasks'].append(TaskTimeBreakdown(
            task_id=task_id,
            # Missing metadata blanks the title; the minutes still count
            task_title=task_titles.get(task_id, ''),
            minutes=report_minutes(minutes),
            sessions=sessions,
        ))

    entries = []
    for (day, user_id), row in per_day.items():
        tasks = sorted(row['tasks'], key=lambda t: (-t.minutes, t.task_id))
        entries.append(DailyTimeLogEntry(
            date=day.isoformat(),
            user_id=user_id,
            user_name=user_names.get(user_id, ''),
            total_minutes=report_minutes(row['minutes']),
            task_count=len(tasks),
            time_logs=tasks,
        ))

    # Stable sorts, least significant key first
    entries.sort(key=lambda e: e.user_id)
    entries.sort(key=lambda e: e.user_name)
    entries.sort(key=lambda e: e.date, reverse=True)
    return entries


def compute_metrics(time_logs):
    """Range-wide totals over closed time logs (not paginated)."""
    total = 0.0
    users = set()
    tasks = set()
    sessions = 0
    for time_log in time_logs:
        total += duration_minutes(time_log.start, time_log.end)
        users.add(time_log.user_id)
        tasks.add(time_log.task_id)
        sessions += 1

    return TimeLogMetrics(
        total_minutes=report_minutes(total),
        total_users=len(users),
        total_tasks=len(tasks),
        total_sessions=sessions,
        average_minutes_per_user=report_minutes(total / len(users)) if users else 0.0,
        average_minutes_per_task=report_minutes(total / len(tasks)) if tasks else 0.0,
    )


def build_daily_report(time_logs, page, limit, user_names=None, task_titles=None):
    """
    Build one page of the daily report.

    Args:
        time_logs: Time logs already filtered to the date range (and user)
        page: 1-based page number
        limit: Rows per page
        user_names: Mapping of user id to display name
        task_titles: Mapping of task id to title

    Returns:
        DailyTimeLogReport
    """
    closed = [time_log for time_log in time_logs if time_log.end is not None]
    entries = _group_by_day(closed, user_names or {}, task_titles or {})

    total_items = len(entries)
    total_pages = math.ceil(total_items / limit)
    skip = (page - 1) * limit

    return DailyTimeLogReport(
        data=entries[skip:skip + limit],
        metrics=compute_metrics(closed),
        pagination=PaginationInfo(
            current_page=page,
            total_pages=total_pages,
            total_items=total_items,
            items_per_page=limit,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        ),
    )
