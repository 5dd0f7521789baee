"""Test settings.

In-memory SQLite, eager Celery and no external services. Used by
pytest-django through ``DJANGO_SETTINGS_MODULE``.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

TIME_ZONE = 'UTC'
CELERY_TIMEZONE = TIME_ZONE

RENTAL_BOOKING = {
    'HOLD_MINUTES': 10,
    'BOOKING_WINDOW_DAYS': 15,
    'MAX_DATES_PER_BOOKING': 15,
    'SWEEP_INTERVAL_SECONDS': 60,
    'MAX_QUERY_DAYS': 93,
}

LOGGING['loggers']['apps']['level'] = 'WARNING'  # noqa: F405
