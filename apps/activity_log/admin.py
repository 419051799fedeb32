"""
Admin configuration for activity_log app.

The trail is append-only: entries are written by the task services and
can only be browsed here.
"""

from django.contrib import admin
from .models import TaskActivity


@admin.register(TaskActivity)
class TaskActivityAdmin(admin.ModelAdmin):

    list_display = ('created_at', 'task', 'user', 'action_type', 'short_description', 'time_log')
    list_filter = ('action_type', 'created_at')
    search_fields = ('task__title', 'description', 'user__email')
    date_hierarchy = 'created_at'
    list_select_related = ('task', 'user', 'time_log')
    readonly_fields = [field.name for field in TaskActivity._meta.fields]

    @admin.display(description='Description')
    def short_description(self, obj):
        if len(obj.description) <= 60:
            return obj.description
        return obj.description[:60] + '...'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
