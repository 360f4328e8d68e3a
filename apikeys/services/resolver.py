import logging
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import DEFAULT_DB_ALIAS

from ..exceptions import InvalidCredential
from ..models import ApiKey

logger = logging.getLogger("blockai.apikeys")


class IdentityResolver:
    """
    Ramène un identifiant appelant à un user id interne.
    Priorité: user id déjà authentifié > clé API > adresse wallet.
    - clé API inconnue/inactive -> InvalidCredential
    - wallet inconnu -> None (l'appelant est anonyme, ce n'est pas une erreur)
    """

    def __init__(self, using: str = DEFAULT_DB_ALIAS) -> None:
        self.using = using

    def resolve(self, *, api_key: Optional[str] = None, wallet_address: Optional[str] = None,
                user_id: Optional[str] = None) -> Optional[str]:
        if user_id:
            return str(user_id)
        if api_key:
            return self._from_api_key(api_key)
        if wallet_address:
            return self._from_wallet(wallet_address)
        return None

    def _from_api_key(self, raw_key: str) -> str:
        ak = ApiKey.objects.using(self.using).filter(key=raw_key).only("id", "user_id", "active").first()
        if ak is None or not ak.active:
            logger.warning("rejected api key (%s)", "inactive" if ak else "unknown")
            raise InvalidCredential()
        ak.record_use(using=self.using)
        return ak.user_id

    def _from_wallet(self, wallet_address: str) -> Optional[str]:
        User = get_user_model()
        return (User.objects.using(self.using)
                .filter(wallet_address=wallet_address)
                .values_list("id", flat=True)
                .first())
