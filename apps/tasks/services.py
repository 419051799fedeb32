"""
Service layer for tasks app.

All business logic for task operations is centralized here.

Services:
- create_task: Create new task
- update_task: Update task fields with activity logging
- change_status: Change task status; starts/stops time logs accordingly
- assign_task: Assign task to a different user
- delete_task: Delete a task after stopping its running timers
- get_task_with_time_spent: Task plus minutes logged on it
"""

import logging

from django.db import transaction
from django.core.exceptions import PermissionDenied, ValidationError

from .models import Task, MAX_ESTIMATED_MINUTES
from apps.activity_log.models import log_task_activity, TaskActivity
from apps.time_logs import get_time_log_service, get_transition_handler

logger = logging.getLogger(__name__)


def _validate_estimate(estimated_minutes):
    if estimated_minutes is None:
        return
    if estimated_minutes < 1 or estimated_minutes > MAX_ESTIMATED_MINUTES:
        raise ValidationError("Task duration must be between 1 minute and 1 week.")


def create_task(title, created_by, description='', assignee=None, estimated_minutes=None):
    """
    Create a task in the todo status.

    Args:
        title: Task title (required)
        created_by: User creating the task (required)
        description: Task description (optional)
        assignee: User responsible for the task (optional)
        estimated_minutes: Planned effort, 1 minute to 1 week (optional)

    Returns:
        Created Task instance

    Raises:
        ValidationError: If required fields are missing or invalid
    """
    if not title or not title.strip():
        raise ValidationError("Task title is required.")

    if not created_by:
        raise ValidationError("Creator is required.")

    if assignee is not None and not assignee.is_active:
        raise ValidationError("Cannot assign task to inactive user.")

    _validate_estimate(estimated_minutes)

    with transaction.atomic():
        task = Task.objects.create(
            title=title.strip(),
            description=description.strip() if description else '',
            created_by=created_by,
            assignee=assignee,
            estimated_minutes=estimated_minutes,
        )

        log_task_activity(
            task=task,
            user=created_by,
            action_type=TaskActivity.ActionType.CREATED,
            description=f'Task created: "{task.title}"'
        )

    logger.info(f'Task created with ID: {task.pk} by user: {created_by.pk}')
    return task


def update_task(task, user, **kwargs):
    """
    Update task fields with activity logging.

    Status is not editable here; use change_status().

    Args:
        task: Task instance to update
        user: User performing the update
        **kwargs: Fields to update (title, description, estimated_minutes)

    Returns:
        Updated Task instance

    Raises:
        ValidationError: If validation fails
    """
    if 'status' in kwargs:
        raise ValidationError("Use change_status() to change task status.")

    editable_fields = ['title', 'description', 'estimated_minutes']
    changes = []

    with transaction.atomic():
        for field in editable_fields:
            if field not in kwargs:
                continue

            new_value = kwargs[field]
            old_value = getattr(task, field)

            if field == 'title':
                if not new_value or not new_value.strip():
                    raise ValidationError("Task title cannot be empty.")
                new_value = new_value.strip()

            elif field == 'description':
                new_value = new_value.strip() if new_value else ''

            elif field == 'estimated_minutes':
                _validate_estimate(new_value)

            if old_value != new_value:
                changes.append({
                    'field': field,
                    'old_value': str(old_value) if old_value is not None else 'None',
                    'new_value': str(new_value) if new_value is not None else 'None',
                })
                setattr(task, field, new_value)

        if changes:
            task.save()

            for change in changes:
                log_task_activity(
                    task=task,
                    user=user,
                    action_type=TaskActivity.ActionType.UPDATED,
                    description=f'{change["field"].replace("_", " ").title()} changed from "{change["old_value"]}" to "{change["new_value"]}"',
                    field_name=change['field'],
                    old_value=change['old_value'],
                    new_value=change['new_value']
                )

    return task


def change_status(task, user, new_status, transition_handler=None):
    """
    Change task status and start/stop time logs to match.

    The status save, the time log changes and the activity entries commit
    together: if the time log step fails, the status change is rolled back.
    The task row is locked for the duration so concurrent status changes on
    one task run one after the other.

    Args:
        task: Task instance
        user: User changing the status (the timer owner when entering in_progress)
        new_status: Target status
        transition_handler: Handler to use (defaults to the app-wide one)

    Returns:
        Updated Task instance

    Raises:
        PermissionDenied: If the user is inactive
        ValidationError: If the status is not a valid choice
    """
    if not user.is_active:
        raise PermissionDenied("Inactive users cannot change task status.")

    if new_status not in Task.Status.values:
        raise ValidationError(
            f"Invalid status: {new_status}. Must be one of: {', '.join(Task.Status.values)}"
        )

    handler = transition_handler or get_transition_handler()
    labels = dict(Task.Status.choices)

    with transaction.atomic():
        locked = Task.objects.select_for_update().get(pk=task.pk)
        old_status = locked.status

        if old_status == new_status:
            task.status = old_status
            return task

        locked.status = new_status
        locked.save(update_fields=['status', 'updated_at'])

        result = handler.handle(locked.pk, old_status, new_status, user.pk)

        log_task_activity(
            task=locked,
            user=user,
            action_type=TaskActivity.ActionType.STATUS_CHANGED,
            description=f'Status changed from {labels.get(old_status)} to {labels.get(new_status)}',
            field_name='status',
            old_value=old_status,
            new_value=new_status
        )

        if result.closed:
            log_task_activity(
                task=locked,
                user=user,
                action_type=TaskActivity.ActionType.TIMER_STOPPED,
                description=f'Stopped {result.closed} running timer(s)'
            )

        if result.opened is not None:
            log_task_activity(
                task=locked,
                user=user,
                action_type=TaskActivity.ActionType.TIMER_STARTED,
                description=f'Timer started for {user.get_full_name()}',
                time_log=result.opened,
            )

    logger.info(f'Task {locked.pk} status changed {old_status} -> {new_status} by user: {user.pk}')

    task.status = locked.status
    task.updated_at = locked.updated_at
    return task


def assign_task(task, user, assignee):
    """
    Assign task to a user.

    Running timers are left alone; they stop when the task leaves
    in_progress or is started again by someone else.

    Raises:
        ValidationError: If assignee is inactive or already assigned
    """
    if not assignee.is_active:
        raise ValidationError("Cannot assign task to inactive user.")

    if task.assignee_id == assignee.pk:
        raise ValidationError("Task is already assigned to this user.")

    old_assignee = task.assignee

    with transaction.atomic():
        task.assignee = assignee
        task.save(update_fields=['assignee', 'updated_at'])

        log_task_activity(
            task=task,
            user=user,
            action_type=TaskActivity.ActionType.ASSIGNED,
            description=(
                f'Reassigned from {old_assignee.get_full_name()} to {assignee.get_full_name()}'
                if old_assignee else f'Assigned to {assignee.get_full_name()}'
            ),
            field_name='assignee',
            old_value=old_assignee.email if old_assignee else None,
            new_value=assignee.email
        )

    return task


def delete_task(task, time_log_service=None):
    """
    Delete a task, stopping its running timers first.

    Time logs outlive the task so daily reports keep their minutes; an
    interval left open here would never be closed.
    """
    service = time_log_service or get_time_log_service()
    task_id = task.pk

    with transaction.atomic():
        Task.objects.select_for_update().filter(pk=task_id).first()
        closed = service.end_all_active_for_task(task_id)
        task.delete()

    logger.info(f'Task {task_id} deleted, {closed} running time log(s) stopped')
    return closed


def get_task_with_time_spent(task_id, time_log_service=None):
    """
    Fetch a task with the minutes logged on it.

    Returns:
        Task instance with a total_time_spent attribute (minutes)

    Raises:
        Task.DoesNotExist: If the task does not exist
    """
    task = Task.objects.select_related('assignee', 'created_by').get(pk=task_id)
    service = time_log_service or get_time_log_service()
    task.total_time_spent = service.total_time_spent(task.pk)
    return task
