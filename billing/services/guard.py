import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from django.core.exceptions import ImproperlyConfigured
from django.db import transaction
from django.utils import timezone

from apikeys.exceptions import InvalidCredential
from apikeys.services.resolver import IdentityResolver
from usage.services.metering import record_usage

from ..tiers import billing_setting, get_tier_policy
from .ledger import BillingLedger
from .payment_request import PaymentInfo, PaymentRequestGenerator

logger = logging.getLogger("blockai.billing")

DEFAULT_ACTION = "API_RESOURCE"

RESET_DAY_OF_MONTH = "day_of_month"
RESET_CALENDAR_DAY = "calendar_day"
RESET_ROLLING_24H = "rolling_24h"


class DenialReason:
    AUTHENTICATION_REQUIRED = "AuthenticationRequired"
    INVALID_CREDENTIAL = "InvalidCredential"
    DAILY_LIMIT_EXCEEDED = "DailyLimitExceeded"
    INSUFFICIENT_CREDITS = "InsufficientCredits"


@dataclass
class AccessResult:
    allowed: bool
    reason: Optional[str] = None
    payment_required: bool = False
    payment_info: Optional[PaymentInfo] = None

    def as_dict(self) -> dict:
        data = {"allowed": self.allowed}
        if self.reason:
            data["reason"] = self.reason
        if self.payment_required:
            data["paymentRequired"] = True
        if self.payment_info is not None:
            data["paymentInfo"] = self.payment_info.as_dict()
        return data


def needs_daily_reset(last_reset_at: datetime, now: datetime, policy: str = RESET_DAY_OF_MONTH) -> bool:
    """
    day_of_month: jour du mois dans le fuseau serveur (comportement historique:
    passe minuit => reset, mais le 5 janvier et le 5 février ne déclenchent rien).
    calendar_day: date complète dans le fuseau serveur. rolling_24h: fenêtre glissante.
    """
    if policy == RESET_ROLLING_24H:
        return now - last_reset_at >= timedelta(hours=24)
    last, current = timezone.localtime(last_reset_at), timezone.localtime(now)
    if policy == RESET_DAY_OF_MONTH:
        return last.day != current.day
    if policy == RESET_CALENDAR_DAY:
        return last.date() != current.date()
    raise ImproperlyConfigured(f"Unknown BILLING['RESET_POLICY']: {policy!r}")


class AccessGuard:
    """
    Garde d'accès x402: résolution d'identité + quota journalier + crédits.

    Par requête, dans une transaction avec la ligne BillingState verrouillée
    (SELECT ... FOR UPDATE), donc sérialisée par utilisateur:
      1) charge/crée l'état (FREE, crédits de départ)
      2) reset quotidien selon RESET_POLICY, persisté avant les contrôles
      3) usage >= limite du tier -> DailyLimitExceeded
      4) tier à crédits et crédits < coût -> InsufficientCredits
      5) sinon usage+1, crédits-coût, UsageLog
    Les refus sont des valeurs (AccessResult), pas des exceptions; les erreurs
    de stockage remontent telles quelles.
    """

    def __init__(self, *, ledger: Optional[BillingLedger] = None,
                 resolver: Optional[IdentityResolver] = None,
                 payments: Optional[PaymentRequestGenerator] = None,
                 clock: Callable[[], datetime] = timezone.now,
                 reset_policy: Optional[str] = None) -> None:
        self.ledger = ledger or BillingLedger()
        self.resolver = resolver or IdentityResolver(using=self.ledger.using)
        self.payments = payments or PaymentRequestGenerator()
        self.clock = clock
        self.reset_policy = reset_policy or billing_setting("RESET_POLICY")

    # -- points d'entrée -------------------------------------------------------

    def access_guard(self, api_key: Optional[str] = None, wallet_address: Optional[str] = None,
                     *, action: str = DEFAULT_ACTION) -> AccessResult:
        """Appelant muni d'une clé API ou d'une adresse wallet."""
        try:
            user_id = self.resolver.resolve(api_key=api_key, wallet_address=wallet_address)
        except InvalidCredential:
            return AccessResult(allowed=False, reason=DenialReason.INVALID_CREDENTIAL)
        return self._guard(user_id, action)

    def guard_with_user(self, user_id: Optional[str], *, action: str = DEFAULT_ACTION) -> AccessResult:
        """Appelant déjà authentifié (ex: JWT)."""
        return self._guard(self.resolver.resolve(user_id=user_id), action)

    # -- logique ---------------------------------------------------------------

    def _guard(self, user_id: Optional[str], action: str) -> AccessResult:
        if not user_id:
            return self._deny(DenialReason.AUTHENTICATION_REQUIRED, None)
        return self.check_access(user_id, action=action)

    def check_access(self, user_id: str, *, action: str = DEFAULT_ACTION) -> AccessResult:
        now = self.clock()
        with transaction.atomic(using=self.ledger.using):
            state = self.ledger.get_for_update(user_id, now=now)

            if needs_daily_reset(state.last_reset_at, now, self.reset_policy):
                self.ledger.update(user_id, daily_usage_count=0, last_reset_at=now)
                state.daily_usage_count = 0
                state.last_reset_at = now

            policy = get_tier_policy(state.tier)
            if state.daily_usage_count >= policy.daily_limit:
                return self._deny(DenialReason.DAILY_LIMIT_EXCEEDED, user_id)

            if policy.decrements_credits and state.credits < policy.cost_per_request:
                return self._deny(DenialReason.INSUFFICIENT_CREDITS, user_id)

            cost = policy.charged_cost
            self.ledger.increment(user_id, daily_usage_count=1, credits=-cost)
            record_usage(user_id=user_id, action=action, cost=cost, using=self.ledger.using)

        return AccessResult(allowed=True)

    def _deny(self, reason: str, user_id: Optional[str]) -> AccessResult:
        logger.info("access denied: reason=%s user=%s", reason, user_id or "anonymous")
        return AccessResult(
            allowed=False,
            reason=reason,
            payment_required=True,
            payment_info=self.payments.generate(user_id),
        )


def get_access_guard() -> AccessGuard:
    return AccessGuard()
