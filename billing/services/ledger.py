from typing import Optional

from django.db import DEFAULT_DB_ALIAS
from django.db.models import F
from django.utils import timezone

from ..models import BillingState
from ..tiers import billing_setting


class BillingLedger:
    """
    Accès bas niveau à BillingState, indexé par user id. Aucune règle métier ici:
    la politique (tiers, reset, crédits) vit dans AccessGuard / UpgradeProcessor.
    Les écritures de compteurs passent par des expressions F() (pas de read-modify-write).
    """

    def __init__(self, using: str = DEFAULT_DB_ALIAS) -> None:
        self.using = using

    def _qs(self):
        return BillingState.objects.using(self.using)

    def get(self, user_id: str) -> Optional[BillingState]:
        return self._qs().filter(user_id=user_id).first()

    def get_for_update(self, user_id: str, now=None) -> BillingState:
        """
        Charge (ou crée) l'état et verrouille la ligne jusqu'à la fin de la transaction.
        À appeler dans transaction.atomic(using=self.using).
        """
        self._qs().get_or_create(user_id=user_id, defaults={
            "tier": billing_setting("DEFAULT_TIER"),
            "credits": billing_setting("STARTING_CREDITS"),
            "daily_usage_count": 0,
            "last_reset_at": now or timezone.now(),
        })
        return self._qs().select_for_update().get(user_id=user_id)

    def update(self, user_id: str, **fields) -> int:
        return self._qs().filter(user_id=user_id).update(**fields)

    def increment(self, user_id: str, **deltas: int) -> int:
        updates = {name: F(name) + delta for name, delta in deltas.items() if delta}
        if not updates:
            return 0
        return self.update(user_id, **updates)

    def upsert(self, user_id: str, *, create: dict, update: dict) -> BillingState:
        """
        create: valeurs si la ligne n'existe pas; update: valeurs (ou F()) sinon.
        """
        state, created = self._qs().get_or_create(user_id=user_id, defaults=create)
        if not created:
            self._qs().filter(pk=state.pk).update(**update)
            state.refresh_from_db(using=self.using)
        return state
