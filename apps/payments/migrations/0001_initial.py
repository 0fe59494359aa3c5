import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('bookings', '0001_initial'),
        ('clients', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='PaymentTransaction',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('failed', 'Failed'), ('cancelled', 'Cancelled')], db_index=True, default='pending', max_length=20)),
                ('description', models.CharField(blank=True, max_length=255)),
                ('provider', models.CharField(blank=True, max_length=20)),
                ('provider_payment_id', models.CharField(blank=True, db_index=True, help_text='Payment identifier assigned by the gateway', max_length=255)),
                ('provider_status', models.CharField(blank=True, help_text='Last raw status reported by the gateway', max_length=50)),
                ('payment_url', models.URLField(blank=True, max_length=1000)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('booking', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='payment_transaction', to='bookings.booking')),
                ('client', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payment_transactions', to='clients.client')),
            ],
            options={
                'verbose_name': 'Payment Transaction',
                'verbose_name_plural': 'Payment Transactions',
                'db_table': 'payment_transactions',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['status', 'created_at'], name='payments_status_created_idx')],
            },
        ),
        migrations.CreateModel(
            name='WebhookLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('provider', models.CharField(db_index=True, help_text='Gateway that sent the callback', max_length=20)),
                ('payment_id', models.CharField(blank=True, db_index=True, max_length=255)),
                ('order_reference', models.CharField(blank=True, max_length=255)),
                ('booking_id', models.UUIDField(blank=True, db_index=True, null=True)),
                ('status', models.CharField(blank=True, max_length=50)),
                ('signature_valid', models.BooleanField(default=False)),
                ('payload', models.JSONField(default=dict, help_text='Full webhook payload (for debugging)')),
                ('processed', models.BooleanField(db_index=True, default=False, help_text='Whether webhook was successfully processed')),
                ('error_message', models.TextField(blank=True, help_text='Error message if processing failed')),
                ('processing_time', models.FloatField(blank=True, help_text='Processing time in seconds', null=True)),
                ('processed_at', models.DateTimeField(blank=True, null=True)),
            ],
            options={
                'verbose_name': 'Webhook Log',
                'verbose_name_plural': 'Webhook Logs',
                'db_table': 'webhook_logs',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['provider', 'status'], name='webhooks_provider_status_idx'),
                    models.Index(fields=['processed'], name='webhooks_processed_idx'),
                    models.Index(fields=['created_at'], name='webhooks_created_idx'),
                ],
            },
        ),
    ]
