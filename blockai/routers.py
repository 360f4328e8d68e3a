from rest_framework.routers import DefaultRouter

router = DefaultRouter()

# Admin API keys
from apikeys.views.apikey import ApiKeyAdminViewSet
router.register(r"admin/apikeys", ApiKeyAdminViewSet, basename="admin-apikeys")

# Admin Billing states
from billing.views import BillingStateAdminViewSet
router.register(r"admin/billing", BillingStateAdminViewSet, basename="admin-billing")

# Admin Usage logs
from usage.views import UsageLogAdminViewSet
router.register(r"admin/usage", UsageLogAdminViewSet, basename="admin-usage")
