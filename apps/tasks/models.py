"""
Task models.

Models:
- Task: Work item whose status changes drive time tracking

Status workflow:
- todo → in_progress → done
- Any status may move to any other; none is terminal
- Entering in_progress starts the acting user's timer, leaving it stops
  every running timer on the task (see apps.time_logs.transitions)
"""

from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator

# One week, the longest estimate a task may carry
MAX_ESTIMATED_MINUTES = 10080


class Task(models.Model):
    """
    Main Task model.

    Time actually spent is not stored here; it is derived from the task's
    closed time logs (apps.time_logs).
    """

    class Status(models.TextChoices):
        TODO = 'todo', 'To Do'
        IN_PROGRESS = 'in_progress', 'In Progress'
        DONE = 'done', 'Done'

    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)

    # Relationships
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='created_tasks',
        help_text='User who created this task'
    )
    assignee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_tasks',
        help_text='User currently responsible for this task'
    )

    status = models.CharField(
        max_length=15,
        choices=Status.choices,
        default=Status.TODO,
        db_index=True,
    )
    estimated_minutes = models.PositiveIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(MAX_ESTIMATED_MINUTES)],
        help_text='Planned effort in minutes (max one week)'
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'task'
        verbose_name_plural = 'tasks'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['created_by', '-created_at'], name='tasks_creator_created_idx'),
            models.Index(fields=['status', 'assignee'], name='tasks_status_assignee_idx'),
        ]

    def __str__(self):
        return f"#{self.pk}: {self.title}"

    @property
    def is_in_progress(self):
        """Check if the task is currently being worked on."""
        return self.status == self.Status.IN_PROGRESS
