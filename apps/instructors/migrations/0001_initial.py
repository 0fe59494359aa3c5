import uuid

import apps.core.validators
import apps.instructors.models
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Instructor',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('full_name', models.CharField(max_length=255)),
                ('phone', models.CharField(blank=True, max_length=20)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('sport_type', models.CharField(choices=[('ski', 'Ski'), ('snowboard', 'Snowboard'), ('both', 'Ski and snowboard')], default='ski', max_length=20)),
                ('admin_percentage', models.DecimalField(decimal_places=2, default=apps.instructors.models.default_admin_percentage, max_digits=5, validators=[apps.core.validators.validate_percentage])),
                ('is_active', models.BooleanField(default=True)),
                ('telegram_chat_id', models.CharField(blank=True, max_length=64)),
            ],
            options={
                'verbose_name': 'Instructor',
                'verbose_name_plural': 'Instructors',
                'db_table': 'instructors',
                'ordering': ['full_name'],
                'indexes': [models.Index(fields=['is_active', 'sport_type'], name='instructors_active_sport_idx')],
            },
        ),
    ]
