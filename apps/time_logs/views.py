"""
Views for time_logs app.

JSON endpoints:
- daily_time_logs: Daily report with metrics and pagination
- time_log_list: Filtered time log history
"""

from django.contrib.auth.decorators import login_required
from django.core.paginator import Paginator
from django.http import JsonResponse
from django.views.decorators.http import require_GET

from . import get_time_log_service
from .aggregation import round_minutes
from .exceptions import TimeLogError
from .filters import TimeLogFilter
from .forms import DailyReportForm
from .models import TimeLog

HISTORY_PAGE_SIZE = 50


def error_response(error):
    """Structured failure response for a time tracking error."""
    return JsonResponse(error.as_dict(), status=error.status_code)


def form_error_response(form):
    """400 response carrying the first form error as the message."""
    errors = form.errors.get_json_data()
    first = next(iter(errors.values()))[0]['message']
    return JsonResponse(
        {'kind': 'BadRequest', 'message': first, 'errors': errors},
        status=400,
    )


def serialize_time_log(time_log):
    minutes = time_log.duration_minutes
    return {
        'id': time_log.pk,
        'taskId': time_log.task_id,
        'userId': time_log.user_id,
        'start': time_log.start.isoformat(),
        'end': time_log.end.isoformat() if time_log.end else None,
        'durationMinutes': round_minutes(minutes) if minutes is not None else None,
    }


@login_required
@require_GET
def daily_time_logs(request):
    """Daily time logs with pagination and range-wide metrics."""
    form = DailyReportForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)

    data = form.cleaned_data
    try:
        report = get_time_log_service().daily_report(
            data['startDate'],
            data['endDate'],
            page=data['page'],
            limit=data['limit'],
            user_id=data.get('userId'),
        )
    except TimeLogError as e:
        return error_response(e)

    return JsonResponse({
        'message': 'Daily time logs retrieved successfully',
        'data': report.as_dict(),
    })


@login_required
@require_GET
def time_log_list(request):
    """Time log history, newest first, filtered by task/user/state/range."""
    filterset = TimeLogFilter(request.GET, queryset=TimeLog.objects.order_by('-start'))
    if not filterset.is_valid():
        return form_error_response(filterset.form)

    paginator = Paginator(filterset.qs, HISTORY_PAGE_SIZE)
    page = paginator.get_page(request.GET.get('page', 1))

    return JsonResponse({
        'message': 'Time logs retrieved successfully',
        'data': [serialize_time_log(time_log) for time_log in page.object_list],
        'pagination': {
            'currentPage': page.number,
            'totalPages': paginator.num_pages,
            'totalItems': paginator.count,
            'itemsPerPage': HISTORY_PAGE_SIZE,
            'hasNextPage': page.has_next(),
            'hasPreviousPage': page.has_previous(),
        },
    })
