# accounts/models.py
import secrets
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.models import AbstractUser, UserManager as DjangoUserManager
from django.db import models
from django.utils import timezone


class Role(models.TextChoices):
    SUPERADMIN = "SUPER_ADMIN", "Super Admin"
    ADMIN      = "ADMIN", "Admin"


class UserManager(DjangoUserManager):
    def create_superadmin(self, *, email, password, name=""):
        first, _, last = (name or "").strip().partition(" ")
        username = email.split("@")[0]
        return self.create_user(
            username=username,
            email=email,
            password=password,
            first_name=first,
            last_name=last,
            role=Role.SUPERADMIN,
            is_staff=True,
        )


class User(AbstractUser):
    """
    Back office user; logs in with email.
    - role: ADMIN (day-to-day bookings) / SUPER_ADMIN (plots, archive, users)
    """

    email = models.EmailField(
        unique=True,
        blank=False,
        null=False,
        error_messages={"unique": "A user with that email already exists."},
    )

    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.ADMIN,
        help_text="Business role",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    objects = UserManager()

    @property
    def is_superadmin(self) -> bool:
        return self.role == Role.SUPERADMIN or self.is_superuser


# 🔹 Single-use tokens for forgot / reset password
class PasswordResetToken(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="password_reset_tokens",
    )
    token = models.CharField(max_length=64, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    valid_until = models.DateTimeField()
    is_used = models.BooleanField(default=False)

    class Meta:
        indexes = [
            models.Index(fields=["user", "created_at"], name="acc_reset_user_created_idx"),
        ]

    def __str__(self):
        return f"{self.user} ({'used' if self.is_used else 'active'})"

    @classmethod
    def issue_for_user(cls, user, ttl_minutes: int | None = None):
        """
        Invalidates older unused tokens of the user and creates a fresh one.
        """
        if ttl_minutes is None:
            ttl_minutes = settings.PASSWORD_RESET_TTL_MINUTES
        cls.objects.filter(user=user, is_used=False).update(is_used=True)
        return cls.objects.create(
            user=user,
            token=secrets.token_urlsafe(32),
            valid_until=timezone.now() + timedelta(minutes=ttl_minutes),
        )

    @property
    def is_valid(self) -> bool:
        return not self.is_used and timezone.now() <= self.valid_until
