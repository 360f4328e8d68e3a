from django.shortcuts import get_object_or_404
from django.db import transaction
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from ..models import ApiKey
from ..serializers.apikey import (
    ApiKeyCreateSerializer, ApiKeyToggleSerializer, ApiKeyOutSerializer, ApiKeyRevealSerializer
)

class ApiKeyViewSet(viewsets.ViewSet):
    """
    Clés API de l'utilisateur courant: création à la demande, liste, désactivation.
    La clé complète n'est renvoyée qu'à la création.
    """
    permission_classes = [IsAuthenticated]

    def list(self, request):
        qs = ApiKey.objects.filter(user=request.user).order_by("-created_at")
        return Response(ApiKeyOutSerializer(qs, many=True).data)

    @transaction.atomic
    def create(self, request):
        ser = ApiKeyCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        ak = ApiKey.objects.create(user=request.user, name=ser.validated_data["name"] or "Default Key")
        return Response(ApiKeyRevealSerializer(ak).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def deactivate(self, request, pk=None):
        ak = get_object_or_404(ApiKey, pk=pk, user=request.user)
        ak.active = False
        ak.save(update_fields=["active"])
        return Response({"detail": "deactivated"}, status=status.HTTP_200_OK)


class ApiKeyAdminViewSet(viewsets.ViewSet):
    """
    Super-admin only: suspension / réactivation des clés API.
    ⚠️ Seuls les admins Django peuvent appeler ces endpoints.
    """
    permission_classes = [IsAdminUser]

    def list(self, request):
        qs = ApiKey.objects.select_related("user").order_by("-created_at")
        user_id = request.query_params.get("user")
        if user_id:
            qs = qs.filter(user_id=user_id)
        return Response(ApiKeyOutSerializer(qs, many=True).data)

    @action(detail=False, methods=["post"], url_path="suspend")
    def suspend(self, request):
        return self._set_active(request, False, "suspended")

    @action(detail=False, methods=["post"], url_path="resume")
    def resume(self, request):
        return self._set_active(request, True, "resumed")

    def _set_active(self, request, active: bool, label: str):
        ser = ApiKeyToggleSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        ak = get_object_or_404(ApiKey, pk=ser.validated_data["key_id"])
        ak.active = active
        ak.save(update_fields=["active"])
        return Response({"detail": label}, status=status.HTTP_200_OK)
