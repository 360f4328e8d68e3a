from rest_framework.permissions import BasePermission, SAFE_METHODS

from billing.serializers.billing import denial_payload
from billing.services.guard import DEFAULT_ACTION, get_access_guard
from core.exceptions import PaymentRequired


class BillingGuardPermission(BasePermission):
    """
    Passe la requête (utilisateur déjà authentifié) au garde de facturation.
    L'action décomptée vient de view.get_guarded_action() (API_RESOURCE par défaut).
    Refus -> PaymentRequired (402 avec paymentInfo), jamais un simple 403.
    Les méthodes sûres ne sont pas décomptées.
    Le résultat accordé est posé sur request.access_result.
    """

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        get_action = getattr(view, "get_guarded_action", None)
        action = get_action() if get_action else DEFAULT_ACTION
        result = get_access_guard().guard_with_user(request.user.pk, action=action)
        if not result.allowed:
            raise PaymentRequired(denial_payload(result))
        request.access_result = result
        return True
