import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('tasks', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='TimeLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('start', models.DateTimeField(default=django.utils.timezone.now, help_text='When work on the task started')),
                ('end', models.DateTimeField(blank=True, help_text='When work stopped; empty while the timer is running', null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('task', models.ForeignKey(db_constraint=False, on_delete=django.db.models.deletion.DO_NOTHING, related_name='time_logs', to='tasks.task')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='time_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'time log',
                'verbose_name_plural': 'time logs',
                'ordering': ['-start'],
                'indexes': [
                    models.Index(fields=['task', 'user', '-created_at'], name='time_logs_task_user_idx'),
                    models.Index(fields=['user', '-start'], name='time_logs_user_start_idx'),
                    models.Index(fields=['task', '-start'], name='time_logs_task_start_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('end__isnull', True)), fields=('task', 'user'), name='time_logs_one_open_per_user_task'),
                    models.CheckConstraint(condition=models.Q(('end__isnull', True), ('end__gt', models.F('start')), _connector='OR'), name='time_logs_end_after_start'),
                ],
            },
        ),
    ]
