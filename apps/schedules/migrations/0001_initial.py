import uuid

import apps.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('instructors', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Tariff',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(max_length=255)),
                ('kind', models.CharField(choices=[('individual', 'Individual'), ('group', 'Group')], default='individual', max_length=20)),
                ('duration_minutes', models.PositiveIntegerField(validators=[apps.core.validators.validate_duration])),
                ('participants', models.PositiveIntegerField(default=1)),
                ('price', models.DecimalField(decimal_places=2, max_digits=10, validators=[apps.core.validators.validate_positive_decimal])),
                ('is_active', models.BooleanField(default=True)),
            ],
            options={
                'verbose_name': 'Tariff',
                'verbose_name_plural': 'Tariffs',
                'db_table': 'tariffs',
                'ordering': ['kind', 'duration_minutes', 'participants'],
            },
        ),
        migrations.CreateModel(
            name='Slot',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('date', models.DateField(db_index=True)),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
                ('location', models.CharField(choices=[('kuliga', 'Kuliga'), ('vorona', 'Vorona')], default='kuliga', max_length=20)),
                ('status', models.CharField(choices=[('available', 'Available'), ('held', 'Held'), ('booked', 'Booked'), ('group', 'Group session')], db_index=True, default='available', max_length=20)),
                ('hold_until', models.DateTimeField(blank=True, null=True)),
                ('instructor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='slots', to='instructors.instructor')),
            ],
            options={
                'verbose_name': 'Slot',
                'verbose_name_plural': 'Slots',
                'db_table': 'instructor_slots',
                'ordering': ['date', 'start_time'],
                'indexes': [
                    models.Index(fields=['instructor', 'date', 'status'], name='slots_instructor_date_idx'),
                    models.Index(fields=['status', 'hold_until'], name='slots_status_hold_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='GroupSession',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('date', models.DateField(db_index=True)),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
                ('location', models.CharField(choices=[('kuliga', 'Kuliga'), ('vorona', 'Vorona')], default='kuliga', max_length=20)),
                ('sport_type', models.CharField(choices=[('ski', 'Ski'), ('snowboard', 'Snowboard'), ('both', 'Ski and snowboard')], default='ski', max_length=20)),
                ('level', models.CharField(choices=[('beginner', 'Beginner'), ('intermediate', 'Intermediate'), ('advanced', 'Advanced')], default='beginner', max_length=20)),
                ('min_participants', models.PositiveIntegerField(default=1)),
                ('max_participants', models.PositiveIntegerField()),
                ('current_participants', models.PositiveIntegerField(default=0)),
                ('price_per_participant', models.DecimalField(decimal_places=2, max_digits=10, validators=[apps.core.validators.validate_positive_decimal])),
                ('status', models.CharField(choices=[('open', 'Open'), ('confirmed', 'Confirmed'), ('cancelled', 'Cancelled')], db_index=True, default='open', max_length=20)),
                ('instructor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='group_sessions', to='instructors.instructor')),
                ('slot', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='group_session', to='schedules.slot')),
            ],
            options={
                'verbose_name': 'Group Session',
                'verbose_name_plural': 'Group Sessions',
                'db_table': 'group_sessions',
                'ordering': ['date', 'start_time'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('current_participants__lte', models.F('max_participants'))), name='group_session_seats_within_max'),
                ],
            },
        ),
    ]
