"""
Time tracking: time log storage, task status transitions and daily reports.
"""


def get_time_log_service():
    """The process-wide TimeLogService built at app startup."""
    from django.apps import apps
    return apps.get_app_config('time_logs').time_log_service


def get_transition_handler():
    """The process-wide TaskStatusTransitionHandler built at app startup."""
    from django.apps import apps
    return apps.get_app_config('time_logs').transition_handler
