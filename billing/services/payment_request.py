from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.conf import settings

ANONYMOUS_REFERENCE = "anonymous"


@dataclass(frozen=True)
class PaymentInfo:
    amount: Decimal
    currency: str
    address: str
    network: str
    reference_id: str

    def as_dict(self) -> dict:
        return {
            "amount": self.amount,
            "currency": self.currency,
            "address": self.address,
            "network": self.network,
            "referenceId": self.reference_id,
        }


class PaymentRequestGenerator:
    """
    Métadonnées 402: comment l'appelant peut lever le blocage.
    Fonction pure de la config X402_PAYMENT; le user id ne sert que de référence
    opaque pour rapprocher un paiement ultérieur.
    """

    def __init__(self, config: Optional[dict] = None) -> None:
        self.config = config if config is not None else settings.X402_PAYMENT

    @property
    def amount(self) -> Decimal:
        return Decimal(str(self.config["AMOUNT"])).quantize(Decimal("0.01"))

    def generate(self, user_id: Optional[str] = None) -> PaymentInfo:
        return PaymentInfo(
            amount=self.amount,
            currency=self.config["CURRENCY"],
            address=self.config["ADDRESS"],
            network=self.config["NETWORK"],
            reference_id=str(user_id) if user_id else ANONYMOUS_REFERENCE,
        )
