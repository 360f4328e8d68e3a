import logging

from celery import shared_task
from django.contrib.auth import get_user_model
from django.db.models import F

logger = logging.getLogger("blockai.usage")


@shared_task(bind=True, max_retries=3, default_retry_delay=5, ignore_result=True)
def award_points_task(self, user_id: str, action: str, points: int):
    """
    Tâche Celery: +points sur l'utilisateur. Effet de bord non critique:
    retry court puis abandon journalisé.
    """
    User = get_user_model()
    try:
        updated = User.objects.filter(pk=user_id).update(points=F("points") + points)
    except Exception as exc:
        if self.request.retries >= self.max_retries:
            logger.exception("points award dropped: user=%s action=%s", user_id, action)
            return
        raise self.retry(exc=exc)

    if not updated:
        logger.warning("points award skipped, unknown user=%s", user_id)
