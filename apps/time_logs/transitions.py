"""
Task status transitions and their effect on time logs.

Transition table:
- any → in_progress: close every running time log on the task, then open
  one for the acting user
- in_progress → todo / done: close every running time log on the task
- todo ↔ done: nothing

Only one person is timed on a task at once. Closing always happens before
opening: if the process dies between the two writes the task is left with
no running timer (under-counts) rather than two (over-counts).
"""

import logging
from dataclasses import dataclass

from apps.tasks.models import Task

from .exceptions import BadRequestError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionPlan:
    close_all: bool = False
    open_for_actor: bool = False

    @property
    def is_noop(self):
        return not (self.close_all or self.open_for_actor)


@dataclass
class TransitionResult:
    closed: int = 0
    opened: object = None


def plan_transition(old_status, new_status):
    """Decide which time log actions a status change requires."""
    valid = Task.Status.values
    for status in (old_status, new_status):
        if status not in valid:
            raise BadRequestError(
                f"Invalid status '{status}'. Must be one of: {', '.join(valid)}"
            )

    if old_status == new_status:
        return TransitionPlan()

    if new_status == Task.Status.IN_PROGRESS:
        return TransitionPlan(close_all=True, open_for_actor=True)

    if old_status == Task.Status.IN_PROGRESS:
        return TransitionPlan(close_all=True)

    return TransitionPlan()


class TaskStatusTransitionHandler:
    """Applies the transition table through a TimeLogService."""

    def __init__(self, time_log_service):
        self.time_log_service = time_log_service

    def handle(self, task_id, old_status, new_status, acting_user_id):
        """
        React to a task's status change.

        Must run inside the caller's status-update transaction; any error
        propagates so the status update fails as a whole.

        Returns:
            TransitionResult with the number of time logs closed and the
            time log opened (or None)
        """
        plan = plan_transition(old_status, new_status)
        result = TransitionResult()
        if plan.is_noop:
            return result

        logger.info(
            f'Handling status change for task {task_id}: {old_status} -> {new_status} '
            f'by user {acting_user_id}'
        )

        with self.time_log_service.atomic():
            if plan.close_all:
                result.closed = self.time_log_service.end_all_active_for_task(task_id)

            if plan.open_for_actor:
                result.opened = self.time_log_service.start_time_log(acting_user_id, task_id)
                logger.info(f'Started new time log for task {task_id} and user {acting_user_id}')

        return result
