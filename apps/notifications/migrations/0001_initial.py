import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='NotificationLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('channel', models.CharField(choices=[('email', 'Email'), ('telegram', 'Telegram')], db_index=True, max_length=20)),
                ('notification_type', models.CharField(choices=[('booking_confirmed', 'Booking Confirmed'), ('booking_cancelled', 'Booking Cancelled'), ('booking_refunded', 'Booking Refunded'), ('instructor_booking', 'Instructor Booking Update'), ('admin_booking', 'Administrator Booking Update'), ('payout_created', 'Payout Created'), ('payout_status_changed', 'Payout Status Changed'), ('admin_alert', 'Administrator Alert')], db_index=True, max_length=50)),
                ('recipient', models.CharField(help_text='Email address or Telegram chat id', max_length=255)),
                ('subject', models.CharField(blank=True, max_length=255)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('sent', 'Sent'), ('failed', 'Failed'), ('skipped', 'Skipped')], db_index=True, default='pending', max_length=20)),
                ('error_message', models.TextField(blank=True)),
                ('sent_at', models.DateTimeField(blank=True, null=True)),
                ('booking_id', models.UUIDField(blank=True, db_index=True, null=True)),
                ('payout_id', models.UUIDField(blank=True, db_index=True, null=True)),
                ('task_id', models.CharField(blank=True, db_index=True, help_text='Celery task that made the attempt; a retry skips recipients it already reached', max_length=255)),
            ],
            options={
                'verbose_name': 'Notification Log',
                'verbose_name_plural': 'Notification Logs',
                'db_table': 'notification_logs',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['notification_type', 'status'], name='notifications_type_status_idx')],
            },
        ),
    ]
