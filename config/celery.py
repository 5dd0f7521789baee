import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("equipment_rental")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

_sweep_interval = float(os.environ.get("BOOKING_SWEEP_INTERVAL_SECONDS", "60"))

app.conf.beat_schedule = {
    # Release capacity held by unpaid payment holds
    "sweep-expired-payment-holds": {
        "task": "bookings.sweep_expired_holds",
        "schedule": _sweep_interval,
        "options": {"expires": max(_sweep_interval - 10, 1)},
    },
}
