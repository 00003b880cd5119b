"""
Celery configuration.

Runs the periodic jobs of the platform: the hourly escrow auto-release
sweep, daily safety score decay, sanction/intervention expiry and the
mission resets. Schedules live in settings.CELERY_BEAT_SCHEDULE and are
persisted by django-celery-beat's DatabaseScheduler.
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Looks for tasks.py in each installed app
app.autodiscover_tasks()
# Escrow workers live outside tasks.py
app.autodiscover_tasks(["escrow.workers"], related_name="auto_release")
