from django.db.models import Count, Sum
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from rest_framework import mixins, serializers, viewsets
from rest_framework.permissions import IsAdminUser

from .models import UsageLog
from .serializers.usage import UsageLogOutSerializer


class UsageLogAdminViewSet(viewsets.GenericViewSet, mixins.ListModelMixin):
    """
    Super-admin: lecture des journaux de consommation.
    Filtres: ?user=<id>&action=<tag>&from=<iso>&to=<iso>
    """
    permission_classes = [IsAdminUser]
    serializer_class = UsageLogOutSerializer
    filterset_fields = ("user", "action")
    ordering_fields = ("created_at", "cost")

    def get_queryset(self):
        qs = UsageLog.objects.order_by("-created_at")
        date_from = self._datetime_param("from")
        date_to = self._datetime_param("to")
        if date_from:
            qs = qs.filter(created_at__gte=date_from)
        if date_to:
            qs = qs.filter(created_at__lt=date_to)
        return qs

    def _datetime_param(self, name):
        raw = self.request.query_params.get(name)
        if not raw:
            return None
        try:
            value = parse_datetime(raw)
        except ValueError:
            value = None
        if value is None:
            raise serializers.ValidationError({name: ["Expected an ISO 8601 datetime."]})
        if timezone.is_naive(value):
            value = timezone.make_aware(value)
        return value

    # Petit résumé agrégé par action
    def list(self, request, *args, **kwargs):
        response = super().list(request, *args, **kwargs)
        qs = self.filter_queryset(self.get_queryset())
        agg = qs.order_by().values("action").annotate(total_calls=Count("id"), total_cost=Sum("cost"))
        response.data = {"results": response.data, "summary": list(agg.order_by("action"))}
        return response
