import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.views import TokenObtainPairView

from common.tasks import send_password_reset_email
from .models import PasswordResetToken
from .permissions import IsSuperAdmin
from .serializers import (
    ForgotPasswordSerializer,
    MyTokenObtainPairSerializer,
    RegisterUserSerializer,
    ResetPasswordSerializer,
    UserSerializer,
)

log = logging.getLogger(__name__)

User = get_user_model()


class MyTokenObtainPairView(TokenObtainPairView):
    """
    POST /api/auth/login/
      { "email": "...", "password": "..." }
    """
    serializer_class = MyTokenObtainPairSerializer


class ForgotPasswordAPIView(APIView):
    """
    POST /api/auth/forgot-password/
      { "email": "user@example.com" }

    Same answer whether or not the email exists.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        ser = ForgotPasswordSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        email = ser.validated_data["email"].lower()

        user = User.objects.filter(email__iexact=email, is_active=True).first()
        if user is not None:
            token = PasswordResetToken.issue_for_user(user)
            transaction.on_commit(lambda: send_password_reset_email.delay(token.pk))
            log.info("🔹 [forgot_password] reset token issued for user=%s", user.pk)
        else:
            log.info("🔹 [forgot_password] no active user for %s", email)

        return Response(
            {"message": "If that email is registered, a reset link has been sent."},
            status=status.HTTP_200_OK,
        )


class ResetPasswordAPIView(APIView):
    """
    POST /api/auth/reset-password/<token>/
      { "password": "new-secret" }
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request, token):
        ser = ResetPasswordSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with transaction.atomic():
            reset = (
                PasswordResetToken.objects
                .select_for_update()
                .select_related("user")
                .filter(token=token)
                .first()
            )
            if reset is None or not reset.is_valid:
                raise ValidationError({"token": "Password reset link is invalid or has expired."})

            user = reset.user
            user.set_password(ser.validated_data["password"])
            user.save(update_fields=["password"])

            reset.is_used = True
            reset.save(update_fields=["is_used"])

        log.info("✅ [reset_password] password changed for user=%s", user.pk)
        return Response({"message": "Password reset successfully"}, status=status.HTTP_200_OK)


class UserViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """
    /api/users/        [SUPER_ADMIN – list, create]
    /api/users/<id>/   [SUPER_ADMIN – retrieve, delete]
    /api/users/me/     [any logged-in user]
    """
    queryset = User.objects.all().order_by("id")
    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated, IsSuperAdmin]

    def get_serializer_class(self):
        if self.action == "create":
            return RegisterUserSerializer
        return UserSerializer

    def perform_destroy(self, instance):
        if instance.pk == self.request.user.pk:
            raise ValidationError({"id": "You cannot delete your own account."})
        instance.delete()

    @action(detail=False, methods=["get"], url_path="me", permission_classes=[IsAuthenticated])
    def me(self, request):
        return Response(UserSerializer(request.user).data)
