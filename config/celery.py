# config/celery.py
import os
from celery import Celery

# config.settings picks local/production from DJANGO_ENV
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("mediashare")

# Read CELERY_* settings from Django
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks.py in all INSTALLED_APPS
app.autodiscover_tasks()
