import os

from celery import Celery
from celery.signals import task_prerun, task_postrun

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'innbook.settings.prod')

app = Celery('innbook')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()


@task_prerun.connect
def close_old_connections_prerun(**kwargs):
    """Drop stale DB connections before a lifecycle task touches the store."""
    from django.db import close_old_connections
    close_old_connections()


@task_postrun.connect
def close_old_connections_postrun(**kwargs):
    from django.db import close_old_connections
    close_old_connections()
