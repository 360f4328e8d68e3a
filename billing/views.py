import time

from django.conf import settings
from django.http import Http404
from django.utils import timezone
from drf_spectacular.utils import extend_schema, OpenApiExample, OpenApiParameter, OpenApiResponse
from rest_framework import mixins, status, viewsets
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.auth.bearer import OptionalJwtBearerAuthentication
from apikeys.models import ApiKey
from apikeys.serializers.apikey import ApiKeyOutSerializer
from core.exceptions import PaymentRequired
from core.permissions.billing_guard import BillingGuardPermission
from usage.services.metering import award_points_later

from .models import BillingState, PaymentRecord
from .serializers.billing import (
    BillingStateOutSerializer, PaymentRecordOutSerializer, PaymentRequiredSerializer,
    ResourceRequestSerializer, SimulatePaymentSerializer, denial_payload,
)
from .services.guard import get_access_guard
from .services.ledger import BillingLedger
from .services.upgrade import UpgradeProcessor

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

PAYMENT_REQUIRED_EXAMPLE = OpenApiExample(
    "Refus 402",
    value={
        "error": "Payment Required",
        "reason": "DailyLimitExceeded",
        "paymentInfo": {
            "amount": 10.0,
            "currency": "USDC",
            "address": "0x742d35Cc6634C0532925a3b844Bc454e4438f44e",
            "network": "Base Sepolia",
            "referenceId": "a1b2c3",
        },
    },
    response_only=True,
    status_codes=["402"],
)


@extend_schema(
    tags=["Resource"],
    request=ResourceRequestSerializer,
    parameters=[OpenApiParameter("X-API-KEY", str, OpenApiParameter.HEADER, required=False)],
    responses={
        200: OpenApiResponse(description="Ressource premium"),
        402: OpenApiResponse(response=PaymentRequiredSerializer,
                             description="AuthenticationRequired | InvalidCredential | DailyLimitExceeded | InsufficientCredits"),
    },
    examples=[PAYMENT_REQUIRED_EXAMPLE],
)
class ProtectedResourceView(APIView):
    """
    POST /resource
    Auth: X-API-KEY, sinon walletAddress (body), sinon wallet de l'utilisateur Bearer.
    Un Bearer invalide ou expiré est ignoré (appelant anonyme), jamais un 401.
    Facturation: 1 crédit / appel en FREE.
    """
    authentication_classes = [OptionalJwtBearerAuthentication]
    permission_classes = [AllowAny]

    def post(self, request):
        ser = ResourceRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        api_key = request.META.get("HTTP_X_API_KEY") or None
        wallet = ser.validated_data.get("walletAddress") or None
        if wallet is None and request.user and request.user.is_authenticated:
            wallet = request.user.wallet_address

        result = get_access_guard().access_guard(api_key=api_key, wallet_address=wallet)
        if not result.allowed:
            raise PaymentRequired(denial_payload(result))

        return Response({
            "message": "Access Granted: Premium Resource Data",
            "data": {
                "market_sentiment": "BULLISH",
                "alpha": "Buy blocking tokens now.",
                "timestamp": timezone.now().isoformat(),
            },
        }, status=status.HTTP_200_OK)


@extend_schema(
    tags=["Resource"],
    request=None,
    responses={
        200: OpenApiResponse(description="Action autorisée et décomptée"),
        402: OpenApiResponse(response=PaymentRequiredSerializer, description="Quota ou crédits épuisés"),
        404: OpenApiResponse(description="Action inconnue"),
    },
    examples=[PAYMENT_REQUIRED_EXAMPLE],
)
class GuardedActionView(APIView):
    """
    POST /actions/<action>
    Point d'entrée des collaborateurs pré-authentifiés (chat IA, NFT, analyse wallet...):
    décompte par BillingGuardPermission puis attribution de points en best-effort.
    """
    permission_classes = [IsAuthenticated, BillingGuardPermission]

    def get_guarded_action(self) -> str:
        action = self.kwargs["action"].upper()
        if action not in settings.ACTIVITY_POINTS:
            raise Http404("Unknown action")
        return action

    def post(self, request, action: str):
        action = self.get_guarded_action()
        award_points_later(user_id=request.user.pk, action=action)
        state = BillingLedger().get(request.user.pk)
        return Response({
            "allowed": True,
            "action": action,
            "billing": BillingStateOutSerializer(state).data,
        }, status=status.HTTP_200_OK)


@extend_schema(tags=["Billing"], responses={200: OpenApiResponse(description="billing, keys, payments")})
class BillingStatsView(APIView):
    """GET /billing: tableau de bord de l'utilisateur courant."""

    def get(self, request):
        user_id = request.user.pk
        state = BillingLedger().get(user_id)
        keys = ApiKey.objects.filter(user_id=user_id).order_by("-created_at")
        payments = PaymentRecord.objects.filter(user_id=user_id).order_by("-created_at")
        return Response({
            "billing": BillingStateOutSerializer(state).data if state else None,
            "keys": ApiKeyOutSerializer(keys, many=True).data,
            "payments": PaymentRecordOutSerializer(payments, many=True).data,
        })


@extend_schema(
    tags=["Billing"],
    request=SimulatePaymentSerializer,
    responses={200: OpenApiResponse(description='{"success": true, "newTier": "PAID"}')},
)
class SimulatePaymentView(APIView):
    """
    POST /payment/simulate
    ⚠️ Simulation: aucun contrôle on-chain, le paiement est réputé confirmé.
    """

    def post(self, request):
        ser = SimulatePaymentSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        tx_hash = ser.validated_data.get("txHash") or f"0xMOCKTX_{int(time.time() * 1000)}"
        wallet = ser.validated_data.get("walletAddress") or ZERO_ADDRESS

        result = UpgradeProcessor().mock_process_payment(tx_hash, wallet, request.user.pk)
        return Response(result.as_dict(), status=status.HTTP_200_OK)


class BillingStateAdminViewSet(viewsets.GenericViewSet,
                               mixins.ListModelMixin,
                               mixins.RetrieveModelMixin):
    """
    Super-admin: consultation des états de facturation (lecture seule).
    """
    permission_classes = [IsAdminUser]
    serializer_class = BillingStateOutSerializer
    lookup_field = "user_id"
    filterset_fields = ("tier",)
    ordering_fields = ("updated_at", "credits", "daily_usage_count")

    def get_queryset(self):
        return BillingState.objects.all().order_by("-updated_at")
