"""
Time log filters using django-filter.

Filters for the time log history view:
- task: Time logs of one task
- user: Time logs of one user
- active: true for running time logs, false for closed ones
- start_after / start_before: Start timestamp range (ISO 8601)
"""

import django_filters

from .models import TimeLog


class TimeLogFilter(django_filters.FilterSet):
    """
    Filter for the time log history.

    Usage in views:
        filterset = TimeLogFilter(request.GET, queryset=queryset)
        time_logs = filterset.qs
    """

    task = django_filters.NumberFilter(field_name='task_id')
    user = django_filters.NumberFilter(field_name='user_id')
    active = django_filters.BooleanFilter(field_name='end', lookup_expr='isnull')
    start_after = django_filters.IsoDateTimeFilter(field_name='start', lookup_expr='gte')
    start_before = django_filters.IsoDateTimeFilter(field_name='start', lookup_expr='lte')

    class Meta:
        model = TimeLog
        fields = ['task', 'user', 'active', 'start_after', 'start_before']
