from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    ForgotPasswordAPIView,
    MyTokenObtainPairView,
    ResetPasswordAPIView,
    UserViewSet,
)

router = DefaultRouter()
router.register(r"users", UserViewSet, basename="user")

urlpatterns = [
    path("auth/login/", MyTokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("auth/forgot-password/", ForgotPasswordAPIView.as_view(), name="forgot_password"),
    path("auth/reset-password/<str:token>/", ResetPasswordAPIView.as_view(), name="reset_password"),
    path("", include(router.urls)),
]
