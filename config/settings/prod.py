"""Production settings for the equipment rental project.

This module extends the base settings with production specific
configuration. Sensitive values must be provided via environment
variables.
"""

from config.env import get_env

from .base import *  # noqa: F401,F403

# Never run with debug enabled in production
DEBUG = False

SECRET_KEY = get_env('DJANGO_SECRET_KEY', required=True)

# Allowed hosts should be defined explicitly via environment variable
ALLOWED_HOSTS = get_env('DJANGO_ALLOWED_HOSTS', required=True).split(',')

# Configure secure proxies and cookies
CSRF_COOKIE_SECURE = True
SESSION_COOKIE_SECURE = True

CELERY_BROKER_URL = get_env('CELERY_BROKER_URL', required=True)
