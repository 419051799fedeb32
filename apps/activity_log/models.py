"""
Task activity trail.

One row per thing that happened to a task: creation, field edits, status
changes, reassignment, and the timers a status change started or stopped.
Timer entries point at the time log they concern when there is exactly one.
"""

from django.db import models
from django.conf import settings


class TaskActivity(models.Model):
    """Audit entry for a task. Written by the task services, read in the admin."""

    class ActionType(models.TextChoices):
        CREATED = 'created', 'Created'
        UPDATED = 'updated', 'Updated'
        STATUS_CHANGED = 'status_changed', 'Status Changed'
        ASSIGNED = 'assigned', 'Assigned'
        TIMER_STARTED = 'timer_started', 'Timer Started'
        TIMER_STOPPED = 'timer_stopped', 'Timer Stopped'

    task = models.ForeignKey(
        'tasks.Task',
        on_delete=models.CASCADE,
        related_name='activities',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='task_activities',
        help_text='User whose action produced the entry'
    )
    action_type = models.CharField(
        max_length=20,
        choices=ActionType.choices,
        db_index=True,
    )
    description = models.TextField()

    # Set for UPDATED / STATUS_CHANGED / ASSIGNED
    field_name = models.CharField(max_length=50, blank=True, default='')
    old_value = models.TextField(null=True, blank=True)
    new_value = models.TextField(null=True, blank=True)

    # Set for TIMER_STARTED
    time_log = models.ForeignKey(
        'time_logs.TimeLog',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='activities',
    )

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = 'task activity'
        verbose_name_plural = 'task activities'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['task', '-created_at'], name='activity_task_created_idx'),
            models.Index(fields=['action_type', '-created_at'], name='activity_action_created_idx'),
        ]

    def __str__(self):
        return f"Task #{self.task_id}: {self.get_action_type_display()} ({self.user_id})"

    @property
    def is_timer_event(self):
        return self.action_type in (self.ActionType.TIMER_STARTED, self.ActionType.TIMER_STOPPED)


def log_task_activity(task, user, action_type, description, field_name='',
                      old_value=None, new_value=None, time_log=None):
    """Append an entry to the task's activity trail and return it."""
    return TaskActivity.objects.create(
        task=task,
        user=user,
        action_type=action_type,
        description=description,
        field_name=field_name or '',
        old_value=old_value,
        new_value=new_value,
        time_log=time_log,
    )
