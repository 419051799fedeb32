from django.apps import AppConfig
from django.conf import settings


class TimeLogsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.time_logs'
    verbose_name = 'Time Logs'

    def ready(self):
        # One service and handler per process, handed out by
        # apps.time_logs.get_time_log_service / get_transition_handler
        from .services import TimeLogService
        from .store import DjangoTimeLogStore
        from .transitions import TaskStatusTransitionHandler

        self.time_log_service = TimeLogService(
            DjangoTimeLogStore(),
            max_limit=getattr(settings, 'TIME_LOG_REPORT_MAX_LIMIT', 100),
        )
        self.transition_handler = TaskStatusTransitionHandler(self.time_log_service)
