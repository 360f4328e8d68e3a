import logging
from dataclasses import dataclass
from typing import Optional

from django.db import transaction
from django.db.models import F

from ..models import PaymentRecord
from ..tiers import billing_setting
from .ledger import BillingLedger
from .payment_request import PaymentRequestGenerator

logger = logging.getLogger("blockai.billing")


@dataclass(frozen=True)
class UpgradeResult:
    success: bool
    new_tier: str

    def as_dict(self) -> dict:
        return {"success": self.success, "newTier": self.new_tier}


class UpgradeProcessor:
    """
    Applique l'effet d'un paiement (simulé): trace le paiement puis passe l'utilisateur
    au tier payant avec un bonus de crédits.
    ⚠️ Tout paiement soumis est considéré comme confirmé: pas de contrôle on-chain,
    pas d'unicité du tx_hash. Ne pas s'en servir comme preuve de paiement.
    """

    def __init__(self, ledger: Optional[BillingLedger] = None,
                 payments: Optional[PaymentRequestGenerator] = None) -> None:
        self.ledger = ledger or BillingLedger()
        self.payments = payments or PaymentRequestGenerator()

    def mock_process_payment(self, tx_hash: str, wallet_address: str, user_id: str) -> UpgradeResult:
        tier = billing_setting("UPGRADE_TIER")
        with transaction.atomic(using=self.ledger.using):
            PaymentRecord.objects.using(self.ledger.using).create(
                tx_hash=tx_hash,
                wallet_address=wallet_address,
                user_id=user_id,
                amount=self.payments.amount,
                status=PaymentRecord.STATUS_COMPLETED,
            )
            state = self.ledger.upsert(
                user_id,
                create={
                    "tier": tier,
                    "credits": billing_setting("NEW_PAID_CREDITS"),
                    "daily_usage_count": 0,
                },
                update={
                    "tier": tier,
                    "credits": F("credits") + billing_setting("PAID_BONUS_CREDITS"),
                },
            )
        logger.info("payment %s applied: user=%s tier=%s credits=%s", tx_hash, user_id, state.tier, state.credits)
        return UpgradeResult(success=True, new_tier=tier)
