"""
Admin configuration for accounts app.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.db.models import Count, Q
from django.utils.translation import gettext_lazy as _

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Email-login user admin, showing how many timers each user has running."""

    list_display = ('email', 'display_name', 'running_timers', 'is_active', 'is_staff')
    list_filter = ('is_active', 'is_staff')
    search_fields = ('email', 'first_name', 'last_name')
    ordering = ('first_name', 'last_name')

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        (_('Name shown in time reports'), {'fields': ('first_name', 'last_name')}),
        (_('Access'), {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
            'classes': ('collapse',),
        }),
        (_('History'), {'fields': ('last_login', 'created_at', 'updated_at')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'first_name', 'last_name', 'password1', 'password2'),
        }),
    )
    readonly_fields = ('last_login', 'created_at', 'updated_at')

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(
            _running_timers=Count('time_logs', filter=Q(time_logs__end__isnull=True)),
        )

    @admin.display(description='Running timers', ordering='_running_timers')
    def running_timers(self, obj):
        return obj._running_timers
