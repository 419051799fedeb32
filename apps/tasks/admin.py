"""
Admin configuration for tasks app.
"""

from django.contrib import admin

from apps.time_logs.models import TimeLog
from .models import Task
from .services import delete_task


class TimeLogInline(admin.TabularInline):
    """Inline admin for time logs on task detail."""
    model = TimeLog
    extra = 0
    fields = ('user', 'start', 'end')
    readonly_fields = ('user', 'start', 'end')
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    """Admin for Task model."""

    list_display = (
        'id', 'title', 'assignee', 'created_by',
        'status', 'estimated_minutes', 'created_at'
    )
    list_filter = ('status', 'created_at')
    search_fields = ('title', 'description')
    ordering = ('-created_at',)
    date_hierarchy = 'created_at'

    # Status changes must go through services.change_status so timers follow
    readonly_fields = ('status', 'created_at', 'updated_at')

    fieldsets = (
        (None, {
            'fields': ('title', 'description', 'estimated_minutes')
        }),
        ('Assignment', {
            'fields': ('assignee', 'created_by')
        }),
        ('Status', {
            'fields': ('status',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    inlines = [TimeLogInline]

    def delete_model(self, request, obj):
        delete_task(obj)

    def delete_queryset(self, request, queryset):
        for task in queryset:
            delete_task(task)
