from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler


class PaymentRequired(exceptions.APIException):
    """
    Refus du garde de facturation rendu en HTTP 402.
    payload: corps déjà sérialisé ({"error", "reason", "paymentInfo"}).
    """
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_detail = "Payment Required"
    default_code = "payment_required"

    def __init__(self, payload: dict):
        super().__init__(detail=payload.get("error", self.default_detail))
        self.payload = payload


def api_exception_handler(exc, context):
    """
    Enveloppe d'erreur commune: {"error": {"code", "message", "details"?}}.
    Les 402 gardent le format x402 ({"error": "Payment Required", "reason", "paymentInfo"}).
    """
    if isinstance(exc, PaymentRequired):
        return Response(exc.payload, status=exc.status_code)

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, Http404):
        code = "not_found"
    else:
        code = getattr(exc, "default_code", "error")

    data = response.data
    if isinstance(data, dict) and set(data) == {"detail"}:
        body = {"code": str(code).upper(), "message": str(data["detail"])}
    else:
        body = {"code": str(code).upper(), "message": "Invalid request", "details": data}
    response.data = {"error": body}
    return response
