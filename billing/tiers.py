from dataclasses import dataclass
from typing import Dict

from django.conf import settings


@dataclass(frozen=True)
class TierPolicy:
    name: str
    daily_limit: int
    cost_per_request: int
    decrements_credits: bool

    @property
    def charged_cost(self) -> int:
        """Crédits réellement débités par requête autorisée."""
        return self.cost_per_request if self.decrements_credits else 0


def _billing() -> dict:
    return settings.BILLING


def tier_table() -> Dict[str, TierPolicy]:
    return {
        name: TierPolicy(
            name=name,
            daily_limit=int(conf["daily_limit"]),
            cost_per_request=int(conf.get("cost_per_request", 1)),
            decrements_credits=bool(conf.get("decrements_credits", True)),
        )
        for name, conf in _billing()["TIERS"].items()
    }


def get_tier_policy(tier: str) -> TierPolicy:
    table = tier_table()
    try:
        return table[tier]
    except KeyError:
        raise ValueError(f"Unknown billing tier: {tier!r}")


def billing_setting(key: str):
    return _billing()[key]
