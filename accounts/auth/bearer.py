import logging
from typing import Optional, Tuple

import jwt
from django.conf import settings
from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication, get_authorization_header

from ..models import User

logger = logging.getLogger("blockai.accounts")


class JwtBearerAuthentication(BaseAuthentication):
    """
    Appelant pré-authentifié: `Authorization: Bearer <jwt>`.
    Le token est émis ailleurs; on vérifie seulement la signature/expiration
    et on en extrait l'identité (claim "userId" ou "sub").
    Sans en-tête Bearer -> None (les autres classes d'auth prennent le relais).
    """
    keyword = b"bearer"

    def authenticate(self, request) -> Optional[Tuple[User, dict]]:
        parts = get_authorization_header(request).split()
        if not parts or parts[0].lower() != self.keyword:
            return None
        if len(parts) != 2:
            raise exceptions.AuthenticationFailed("Invalid Authorization header")

        try:
            payload = jwt.decode(
                parts[1].decode("utf-8"),
                settings.JWT_SECRET,
                algorithms=[settings.JWT_ALGORITHM],
            )
        except jwt.ExpiredSignatureError:
            raise exceptions.AuthenticationFailed("Token expired")
        except (jwt.InvalidTokenError, UnicodeDecodeError):
            raise exceptions.AuthenticationFailed("Invalid token")

        user_id = payload.get("userId") or payload.get("sub")
        if not user_id:
            raise exceptions.AuthenticationFailed("Invalid token")

        user = User.objects.filter(pk=user_id, is_active=True).first()
        if user is None:
            raise exceptions.AuthenticationFailed("User not found")
        return (user, payload)

    def authenticate_header(self, request) -> str:
        return 'Bearer realm="api"'


class OptionalJwtBearerAuthentication(JwtBearerAuthentication):
    """
    Variante pour les routes ouvertes (clé API / wallet): un Bearer invalide ou
    expiré est ignoré au lieu de produire un 401, l'appelant reste anonyme.
    """

    def authenticate(self, request) -> Optional[Tuple[User, dict]]:
        try:
            return super().authenticate(request)
        except exceptions.AuthenticationFailed as exc:
            logger.info("bearer ignored on open route: %s", exc.detail)
            return None
