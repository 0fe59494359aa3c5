"""
Test settings

Everything external is replaced with an in-process stand-in: SQLite,
locmem cache and mail, eager Celery, the mock payment gateway.
"""
import os

for _name, _value in {
    'SECRET_KEY': 'test-secret-key',
    'DB_NAME': 'test',
    'DB_USER': 'test',
    'DB_PASSWORD': 'test',
    'DB_HOST': 'localhost',
    'DB_PORT': '5432',
    'REDIS_URL': 'redis://localhost:6379/15',
}.items():
    os.environ.setdefault(_name, _value)

from .base import *  # noqa: E402

DEBUG = False

if os.environ.get('TEST_DATABASE_ENGINE') != 'postgresql':
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': ':memory:',
            'ATOMIC_REQUESTS': False,
        }
    }

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}
SESSION_ENGINE = 'django.contrib.sessions.backends.db'

STORAGES['staticfiles'] = {
    'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = False

PAYMENT_PROVIDER = 'mock'
PAYMENT_MOCK_SECRET = 'test-mock-secret'
TELEGRAM_BOT_TOKEN = ''
TELEGRAM_ADMIN_CHAT_IDS = []

LOGGING['root']['level'] = 'WARNING'
