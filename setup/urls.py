from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import LayoutResourceViewSet, LayoutViewSet

router = DefaultRouter()
router.register(r"layouts", LayoutViewSet, basename="layout")
router.register(r"layout-resources", LayoutResourceViewSet, basename="layout-resource")

urlpatterns = [path("", include(router.urls))]
