from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import BookingViewSet, DeletedContactViewSet

router = DefaultRouter()
router.register(r"bookings", BookingViewSet, basename="booking")
router.register(r"deleted-contacts", DeletedContactViewSet, basename="deleted-contact")

urlpatterns = [path("", include(router.urls))]
