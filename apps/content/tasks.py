# content/tasks.py
from celery import shared_task

from . import services


@shared_task(bind=True)
def reconcile_like_counts(self, content_ids=None):
    """
    Recompute like_count from the Like ledger for all (or the given) contents.
    """
    corrected = services.reconcile_like_counts(content_ids=content_ids)
    return {"status": "done", "corrected": corrected}
