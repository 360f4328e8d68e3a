from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


class Tier(models.TextChoices):
    FREE = "FREE", "Free"
    PAID = "PAID", "Paid"


class BillingState(models.Model):
    """
    État de facturation, 1-1 avec User, créé paresseusement au premier accès.
    - tier: plan courant (politique dans settings.BILLING["TIERS"], cf. billing.tiers)
    - credits: solde décrémenté par requête pour les tiers qui consomment des crédits
    - daily_usage_count: appels depuis le dernier reset quotidien
    - last_reset_at: date du dernier reset (comparée au jour près)
    Seuls AccessGuard et UpgradeProcessor écrivent cette table.
    """
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE,
                                related_name="billing_state")
    tier = models.CharField(max_length=16, choices=Tier.choices, default=Tier.FREE)
    credits = models.IntegerField(default=20)
    daily_usage_count = models.PositiveIntegerField(default=0)
    last_reset_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "billing_states"

    def __str__(self) -> str:
        return f"BillingState(user={self.user_id}, tier={self.tier}, credits={self.credits})"


class PaymentRecord(models.Model):
    """
    Journal immuable des paiements (simulés). Aucune vérification on-chain:
    tx_hash n'est ni unique ni contrôlé.
    """
    STATUS_PENDING = "PENDING"
    STATUS_COMPLETED = "COMPLETED"
    STATUS_FAILED = "FAILED"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_FAILED, "Failed"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="payments")
    tx_hash = models.CharField(max_length=128, db_index=True)
    wallet_address = models.CharField(max_length=128)
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "payments"
        indexes = [models.Index(fields=["user", "created_at"], name="payments_user_created_idx")]

    def __str__(self) -> str:
        return f"Payment({self.tx_hash}, user={self.user_id}, {self.status})"
