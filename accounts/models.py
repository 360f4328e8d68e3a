import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models


def _new_user_id() -> str:
    return uuid.uuid4().hex


class User(AbstractUser):
    """
    Ancre d'identité. L'id (texte, immuable) est la clé de jointure des
    clés API, de l'état de facturation et des journaux d'usage.
    - email / wallet_address: optionnels mais uniques s'ils sont renseignés
    - points: points d'activité (attribués en best-effort, cf. usage.tasks)
    """
    id = models.CharField(primary_key=True, max_length=64, default=_new_user_id, editable=False)
    email = models.EmailField(unique=True, null=True, blank=True)
    wallet_address = models.CharField(max_length=128, unique=True, null=True, blank=True)
    full_name = models.CharField(max_length=150, blank=True, default="")
    points = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "users"

    def __str__(self) -> str:
        return self.email or self.wallet_address or self.username

    def save(self, *args, **kwargs):
        # "" casserait l'unicité: on stocke NULL
        self.email = self.email or None
        self.wallet_address = self.wallet_address or None
        super().save(*args, **kwargs)
