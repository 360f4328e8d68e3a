import logging

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS

from usage.models import UsageLog

logger = logging.getLogger("blockai.usage")


def record_usage(*, user_id: str, action: str, cost: int = 0, using: str = DEFAULT_DB_ALIAS) -> UsageLog:
    """
    Enregistre une consommation. Appelé par le garde dans sa transaction.
    """
    return UsageLog.objects.using(using).create(user_id=user_id, action=action, cost=cost)


def points_for(action: str) -> int:
    return int(settings.ACTIVITY_POINTS.get(action, 0))


def award_points_later(*, user_id: str, action: str) -> bool:
    """
    Attribution de points en best-effort: mise en file Celery, sans attendre.
    Un échec (broker indisponible...) est journalisé et n'échoue jamais la requête.
    Retourne True si la tâche a été mise en file.
    """
    points = points_for(action)
    if points <= 0:
        return False

    from usage.tasks import award_points_task

    try:
        award_points_task.delay(user_id, action, points)
    except Exception:
        logger.warning("could not queue points award: user=%s action=%s", user_id, action, exc_info=True)
        return False
    return True
