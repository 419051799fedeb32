"""
Views for tasks app.

JSON endpoints used by the time tracking flow:
- task_detail: Task with total time spent
- task_status_change: Change status (starts/stops time logs)
"""

from django.contrib.auth.decorators import login_required
from django.core.exceptions import PermissionDenied, ValidationError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_POST

from apps.time_logs.exceptions import TimeLogError
from apps.time_logs.views import error_response
from .models import Task
from .services import change_status, get_task_with_time_spent


def serialize_task(task, total_time_spent=None):
    data = {
        'id': task.pk,
        'title': task.title,
        'description': task.description,
        'status': task.status,
        'assigneeId': task.assignee_id,
        'createdById': task.created_by_id,
        'estimatedMinutes': task.estimated_minutes,
        'updatedAt': task.updated_at.isoformat() if task.updated_at else None,
    }
    if total_time_spent is not None:
        data['totalTimeSpent'] = total_time_spent
    return data


@login_required
@require_GET
def task_detail(request, pk):
    """Task with the minutes logged on it."""
    try:
        task = get_task_with_time_spent(pk)
    except Task.DoesNotExist:
        return JsonResponse({'kind': 'NotFound', 'message': 'Task not found'}, status=404)
    except TimeLogError as e:
        return error_response(e)

    return JsonResponse({
        'message': 'Task retrieved successfully',
        'data': serialize_task(task, task.total_time_spent),
    })


@login_required
@require_POST
def task_status_change(request, pk):
    """Change task status; the acting user's timer follows the new status."""
    task = get_object_or_404(Task, pk=pk)

    new_status = request.POST.get('status')
    if not new_status:
        return JsonResponse({'kind': 'BadRequest', 'message': 'Status required'}, status=400)

    try:
        task = change_status(task, request.user, new_status)
    except PermissionDenied as e:
        return JsonResponse({'kind': 'Forbidden', 'message': str(e)}, status=403)
    except ValidationError as e:
        return JsonResponse({'kind': 'BadRequest', 'message': e.messages[0]}, status=400)
    except TimeLogError as e:
        return error_response(e)

    return JsonResponse({
        'message': f'Task status changed to {task.get_status_display()}',
        'data': serialize_task(task),
    })
