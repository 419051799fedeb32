"""
URL configuration for tasks app.
"""

from django.urls import path
from . import views

app_name = 'tasks'

urlpatterns = [
    path('<int:pk>/', views.task_detail, name='task_detail'),
    path('<int:pk>/status/', views.task_status_change, name='task_status_change'),
]
