import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('tasks', '0001_initial'),
        ('time_logs', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='TaskActivity',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action_type', models.CharField(choices=[('created', 'Created'), ('updated', 'Updated'), ('status_changed', 'Status Changed'), ('assigned', 'Assigned'), ('timer_started', 'Timer Started'), ('timer_stopped', 'Timer Stopped')], db_index=True, max_length=20)),
                ('description', models.TextField()),
                ('field_name', models.CharField(blank=True, default='', max_length=50)),
                ('old_value', models.TextField(blank=True, null=True)),
                ('new_value', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('task', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='activities', to='tasks.task')),
                ('time_log', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='activities', to='time_logs.timelog')),
                ('user', models.ForeignKey(help_text='User whose action produced the entry', on_delete=django.db.models.deletion.PROTECT, related_name='task_activities', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'task activity',
                'verbose_name_plural': 'task activities',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['task', '-created_at'], name='activity_task_created_idx'),
                    models.Index(fields=['action_type', '-created_at'], name='activity_action_created_idx'),
                ],
            },
        ),
    ]
