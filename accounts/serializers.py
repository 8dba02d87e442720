from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .models import Role

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            "id", "username", "first_name", "last_name", "email",
            "role", "is_active", "date_joined",
        ]
        read_only_fields = ["id", "date_joined"]


class RegisterUserSerializer(serializers.ModelSerializer):
    """
    Super admin creates ADMIN / SUPER_ADMIN users.
    """
    password = serializers.CharField(write_only=True, min_length=6, required=True)

    class Meta:
        model = User
        fields = [
            "id", "username", "password",
            "first_name", "last_name", "email",
            "role",
        ]
        read_only_fields = ["id"]

    def validate_password(self, value):
        validate_password(value)
        return value

    def create(self, validated_data):
        raw_password = validated_data.pop("password")
        user = User(**validated_data)
        user.is_staff = user.role == Role.SUPERADMIN
        user.set_password(raw_password)
        user.save()
        return user


def user_payload(user):
    return {
        "id": user.id,
        "username": user.username,
        "name": user.get_full_name() or user.username,
        "email": user.email,
        "role": user.role,
        "is_superuser": user.is_superuser,
    }


class MyTokenObtainPairSerializer(TokenObtainPairSerializer):
    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)

        # 🔹 Extra claims inside JWT
        token["email"] = user.email
        token["role"] = user.role
        return token

    def validate(self, attrs):
        """
        /api/auth/login/ response: access, refresh, token (= access), user.
        """
        data = super().validate(attrs)
        data["token"] = data["access"]
        data["user"] = user_payload(self.user)
        return data


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ResetPasswordSerializer(serializers.Serializer):
    password = serializers.CharField(write_only=True, min_length=6)

    def validate_password(self, value):
        validate_password(value)
        return value
