import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('instructors', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='InstructorPayout',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('period_start', models.DateField()),
                ('period_end', models.DateField()),
                ('trainings_count', models.PositiveIntegerField(default=0)),
                ('total_revenue', models.DecimalField(decimal_places=2, max_digits=12)),
                ('instructor_earnings', models.DecimalField(decimal_places=2, max_digits=12)),
                ('admin_commission', models.DecimalField(decimal_places=2, max_digits=12)),
                ('admin_percentage', models.DecimalField(decimal_places=2, help_text='Commission rate applied when the payout was computed', max_digits=5)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('paid', 'Paid'), ('cancelled', 'Cancelled')], db_index=True, default='pending', max_length=20)),
                ('payment_method', models.CharField(blank=True, choices=[('card', 'Card'), ('cash', 'Cash'), ('transfer', 'Bank transfer')], max_length=20)),
                ('payment_date', models.DateField(blank=True, null=True)),
                ('payment_comment', models.TextField(blank=True)),
                ('created_by', models.CharField(blank=True, max_length=150)),
                ('paid_by', models.CharField(blank=True, max_length=150)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('instructor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payouts', to='instructors.instructor')),
            ],
            options={
                'verbose_name': 'Instructor Payout',
                'verbose_name_plural': 'Instructor Payouts',
                'db_table': 'instructor_payouts',
                'ordering': ['-period_end', 'instructor'],
                'indexes': [models.Index(fields=['instructor', 'status'], name='payouts_instructor_status_idx')],
                'constraints': [
                    models.UniqueConstraint(fields=('instructor', 'period_start', 'period_end'), name='unique_payout_per_instructor_period'),
                ],
            },
        ),
    ]
