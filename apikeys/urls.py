from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views.apikey import ApiKeyViewSet

router = SimpleRouter()
router.register(r"api-keys", ApiKeyViewSet, basename="api-keys")

urlpatterns = [path("", include(router.urls))]
