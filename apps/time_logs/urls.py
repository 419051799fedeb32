"""
URL configuration for time_logs app.
"""

from django.urls import path
from . import views

app_name = 'time_logs'

urlpatterns = [
    path('', views.time_log_list, name='time_log_list'),
    path('daily/', views.daily_time_logs, name='daily_time_logs'),
]
