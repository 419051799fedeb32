"""
Admin configuration for time_logs app.

Deleting time logs is an administrative operation only; they cannot be
created or edited here.
"""

from django.contrib import admin

from .models import TimeLog


@admin.register(TimeLog)
class TimeLogAdmin(admin.ModelAdmin):
    """Admin for TimeLog model."""

    list_display = ('task_id', 'user', 'start', 'end', 'duration_display', 'is_active_display')
    list_filter = ('start', 'user')
    search_fields = ('user__email', 'user__first_name', 'user__last_name')
    ordering = ('-start',)
    date_hierarchy = 'start'

    readonly_fields = ('task', 'user', 'start', 'end', 'created_at', 'updated_at')

    def duration_display(self, obj):
        """Show duration in minutes."""
        minutes = obj.duration_minutes
        return '-' if minutes is None else f'{minutes:.1f} min'
    duration_display.short_description = 'Duration'

    def is_active_display(self, obj):
        return obj.is_active
    is_active_display.short_description = 'Running'
    is_active_display.boolean = True

    def has_add_permission(self, request):
        """Time logs are only opened by task status changes."""
        return False

    def has_change_permission(self, request, obj=None):
        """Prevent editing of time logs."""
        return False

    def get_queryset(self, request):
        """Optimize with select_related."""
        return super().get_queryset(request).select_related('user')
