"""
Forms for time_logs app.

- DailyReportForm: Validates the daily report query string
"""

from django import forms
from django.conf import settings
from django.core.exceptions import ValidationError


class DailyReportForm(forms.Form):
    """
    Query parameters of the daily time log report.

    Field names match the query string: startDate, endDate, page, limit,
    userId. Dates are inclusive and date-only.
    """

    startDate = forms.DateField(
        error_messages={
            'required': 'Start date is required',
            'invalid': 'Start date must be a valid ISO date',
        },
    )
    endDate = forms.DateField(
        error_messages={
            'required': 'End date is required',
            'invalid': 'End date must be a valid ISO date',
        },
    )
    page = forms.IntegerField(
        required=False,
        min_value=1,
        error_messages={
            'invalid': 'Page must be an integer',
            'min_value': 'Page must be at least 1',
        },
    )
    limit = forms.IntegerField(
        required=False,
        min_value=1,
        max_value=settings.TIME_LOG_REPORT_MAX_LIMIT,
        error_messages={
            'invalid': 'Limit must be an integer',
            'min_value': 'Limit must be at least 1',
            'max_value': f'Limit cannot exceed {settings.TIME_LOG_REPORT_MAX_LIMIT}',
        },
    )
    userId = forms.IntegerField(
        required=False,
        min_value=1,
        error_messages={
            'invalid': 'User ID must be a valid id',
            'min_value': 'User ID must be a valid id',
        },
    )

    def clean(self):
        cleaned_data = super().clean()
        start = cleaned_data.get('startDate')
        end = cleaned_data.get('endDate')

        if start and end and end < start:
            raise ValidationError({'endDate': 'End date must be after start date'})

        if not cleaned_data.get('page'):
            cleaned_data['page'] = 1
        if not cleaned_data.get('limit'):
            cleaned_data['limit'] = settings.TIME_LOG_REPORT_DEFAULT_LIMIT

        return cleaned_data
