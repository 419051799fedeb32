"""
Time log model.

A TimeLog is one interval of a user working on a task. It is created open
(no end) when the task enters in_progress and closed exactly once when the
user's timer stops.

Database constraints:
- at most one open time log per (task, user)
- end, when set, is strictly after start
"""

from django.db import models
from django.db.models import F, Q
from django.conf import settings
from django.utils import timezone


class TimeLog(models.Model):
    """Start/stop interval of work on a task."""

    # Tasks may be deleted while their time logs are kept for reporting,
    # so the reference carries no database constraint.
    task = models.ForeignKey(
        'tasks.Task',
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name='time_logs',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='time_logs',
    )
    start = models.DateTimeField(
        default=timezone.now,
        help_text='When work on the task started'
    )
    end = models.DateTimeField(
        null=True,
        blank=True,
        help_text='When work stopped; empty while the timer is running'
    )

    # Audit fields
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'time log'
        verbose_name_plural = 'time logs'
        ordering = ['-start']
        indexes = [
            models.Index(fields=['task', 'user', '-created_at'], name='time_logs_task_user_idx'),
            models.Index(fields=['user', '-start'], name='time_logs_user_start_idx'),
            models.Index(fields=['task', '-start'], name='time_logs_task_start_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['task', 'user'],
                condition=Q(end__isnull=True),
                name='time_logs_one_open_per_user_task',
            ),
            models.CheckConstraint(
                condition=Q(end__isnull=True) | Q(end__gt=F('start')),
                name='time_logs_end_after_start',
            ),
        ]

    def __str__(self):
        end = self.end.strftime('%Y-%m-%d %H:%M') if self.end else 'running'
        return f"Time log: {self.start.strftime('%Y-%m-%d %H:%M')} - {end}"

    @property
    def is_active(self):
        """An open time log has no end yet."""
        return self.end is None

    @property
    def duration_minutes(self):
        """Calculate duration in minutes (None while running)."""
        if self.end is None:
            return None
        delta = self.end - self.start
        return delta.total_seconds() / 60
