from django.urls import path

from .views import BillingStatsView, GuardedActionView, ProtectedResourceView, SimulatePaymentView

urlpatterns = [
    path("resource/", ProtectedResourceView.as_view(), name="protected-resource"),
    path("actions/<str:action>/", GuardedActionView.as_view(), name="guarded-action"),
    path("billing/", BillingStatsView.as_view(), name="billing-stats"),
    path("payment/simulate/", SimulatePaymentView.as_view(), name="payment-simulate"),
]
