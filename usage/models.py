from django.conf import settings
from django.db import models


class UsageLog(models.Model):
    """
    Journal de consommation, en ajout seul (jamais modifié ni supprimé par le garde).
    - action: tag de l'appelant ('API_RESOURCE' | 'AI_CHAT' | 'NFT_GENERATE' ...)
    - cost: crédits effectivement débités (0 pour les tiers qui ne consomment pas de crédits)
    """
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="usage_logs")
    action = models.CharField(max_length=64, db_index=True)
    cost = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "usage_logs"
        indexes = [
            models.Index(fields=["user", "action", "created_at"], name="usage_user_action_idx"),
            models.Index(fields=["user", "created_at"], name="usage_user_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}:{self.action}@{self.created_at:%Y-%m-%d %H:%M:%S}"
