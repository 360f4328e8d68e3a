import secrets

from django.conf import settings
from django.db import models
from django.db.models import F
from django.utils import timezone


def generate_key() -> str:
    return f"bk_{secrets.token_urlsafe(24)}"


class ApiKey(models.Model):
    """
    Clé API portée par un utilisateur (un seul propriétaire).
    - key: chaîne présentée dans X-API-KEY, unique
    - active: une clé désactivée est refusée (InvalidCredential), jamais supprimée par l'API
    - usage_count / last_used_at: mis à jour à chaque résolution réussie
    """
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="api_keys")
    key = models.CharField(max_length=64, unique=True, default=generate_key)
    name = models.CharField(max_length=128, blank=True, default="Default Key")
    active = models.BooleanField(default=True)
    usage_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    last_used_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "api_keys"
        indexes = [models.Index(fields=["user", "active"], name="api_keys_user_active_idx")]

    def __str__(self) -> str:
        return f"{self.user_id}:{self.name}"

    def record_use(self, using=None):
        # incrément atomique côté SQL: pas de read-modify-write
        now = timezone.now()
        ApiKey.objects.using(using or self._state.db).filter(pk=self.pk).update(
            usage_count=F("usage_count") + 1, last_used_at=now
        )
        self.last_used_at = now
