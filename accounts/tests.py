from datetime import timedelta
from unittest import mock

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import override_settings
from django.urls import reverse
from django.utils import timezone

from accounts.models import PasswordResetToken, Role, User
from tests.base import BaseAPITestCase


class LoginTests(BaseAPITestCase):
    def setUp(self):
        super().setUp()
        self.user = self.make_user(email="admin@example.com", first_name="Anil")

    def test_login_returns_jwt_and_user_payload(self):
        response = self.client.post(
            reverse("token_obtain_pair"),
            {"email": "admin@example.com", "password": self.default_password},
            format="json",
        )

        self.assertEqual(response.status_code, 200, response.content)
        body = response.json()
        self.assertEqual(body["token"], body["access"])
        self.assertIn("refresh", body)
        self.assertEqual(body["user"]["email"], "admin@example.com")
        self.assertEqual(body["user"]["role"], Role.ADMIN)

    def test_token_authenticates_api_calls(self):
        token = self.client.post(
            reverse("token_obtain_pair"),
            {"email": "admin@example.com", "password": self.default_password},
            format="json",
        ).json()["token"]

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        response = self.client.get(reverse("user-me"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["email"], "admin@example.com")

    def test_bad_credentials_are_401(self):
        response = self.client.post(
            reverse("token_obtain_pair"),
            {"email": "admin@example.com", "password": "wrong-pass"},
            format="json",
        )
        self.assertErrorShape(response, 401)

    def test_api_requires_authentication(self):
        response = self.client.get(reverse("plot-list"))
        self.assertErrorShape(response, 401)


class PasswordResetTests(BaseAPITestCase):
    def setUp(self):
        super().setUp()
        self.user = self.make_user(email="owner@example.com")

    @mock.patch("accounts.views.send_password_reset_email")
    def test_forgot_password_issues_token_and_queues_mail(self, task):
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(
                reverse("forgot_password"), {"email": "Owner@Example.com"}, format="json"
            )

        self.assertEqual(response.status_code, 200)
        token = PasswordResetToken.objects.get(user=self.user)
        self.assertFalse(token.is_used)
        self.assertAlmostEqual(
            (token.valid_until - timezone.now()).total_seconds(), 3600, delta=60
        )
        task.delay.assert_called_once_with(token.pk)

    @mock.patch("accounts.views.send_password_reset_email")
    def test_forgot_password_unknown_email_still_200(self, task):
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(
                reverse("forgot_password"), {"email": "nobody@example.com"}, format="json"
            )

        self.assertEqual(response.status_code, 200)
        self.assertFalse(PasswordResetToken.objects.exists())
        task.delay.assert_not_called()

    def test_new_token_invalidates_older_ones(self):
        first = PasswordResetToken.issue_for_user(self.user)
        second = PasswordResetToken.issue_for_user(self.user)
        first.refresh_from_db()
        self.assertTrue(first.is_used)
        self.assertTrue(second.is_valid)

    def test_reset_password_sets_new_password_once(self):
        token = PasswordResetToken.issue_for_user(self.user)
        url = reverse("reset_password", kwargs={"token": token.token})

        response = self.client.post(url, {"password": "n3w-secret"}, format="json")
        self.assertEqual(response.status_code, 200, response.content)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("n3w-secret"))

        again = self.client.post(url, {"password": "other-secret"}, format="json")
        body = self.assertErrorShape(again, 400, "validation_error")
        self.assertEqual(body["errors"][0]["field"], "token")

    def test_expired_token_is_rejected(self):
        token = PasswordResetToken.issue_for_user(self.user)
        PasswordResetToken.objects.filter(pk=token.pk).update(
            valid_until=timezone.now() - timedelta(minutes=1)
        )
        response = self.client.post(
            reverse("reset_password", kwargs={"token": token.token}),
            {"password": "n3w-secret"},
            format="json",
        )
        self.assertErrorShape(response, 400, "validation_error")

    def test_unknown_token_is_rejected(self):
        response = self.client.post(
            reverse("reset_password", kwargs={"token": "nope"}),
            {"password": "n3w-secret"},
            format="json",
        )
        self.assertErrorShape(response, 400)


class UserManagementTests(BaseAPITestCase):
    def setUp(self):
        super().setUp()
        self.superadmin = self.login_as(self.make_superadmin())

    def test_superadmin_creates_admin(self):
        response = self.client.post(
            reverse("user-list"),
            {
                "username": "clerk",
                "email": "clerk@example.com",
                "password": "clerk-pass",
                "role": Role.ADMIN,
            },
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.content)
        user = User.objects.get(email="clerk@example.com")
        self.assertTrue(user.check_password("clerk-pass"))
        self.assertFalse(user.is_staff)
        self.assertNotIn("password", response.json())

    def test_admin_cannot_manage_users(self):
        self.login_as(self.make_user())
        self.assertErrorShape(self.client.get(reverse("user-list")), 403)

    def test_superadmin_cannot_delete_self(self):
        response = self.client.delete(reverse("user-detail", args=[self.superadmin.pk]))
        self.assertErrorShape(response, 400)
        self.assertTrue(User.objects.filter(pk=self.superadmin.pk).exists())

    def test_me_is_open_to_admins(self):
        admin = self.login_as(self.make_user())
        response = self.client.get(reverse("user-me"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["id"], admin.id)


class BootstrapSuperadminTests(BaseAPITestCase):
    @override_settings(
        SUPERADMIN_EMAIL="root@example.com",
        SUPERADMIN_PASSWORD="root-pass",
        SUPERADMIN_NAME="Root User",
    )
    def test_creates_superadmin_once(self):
        call_command("bootstrap_superadmin", stdout=mock.MagicMock())
        call_command("bootstrap_superadmin", stdout=mock.MagicMock())

        users = User.objects.filter(role=Role.SUPERADMIN)
        self.assertEqual(users.count(), 1)
        root = users.get()
        self.assertEqual(root.email, "root@example.com")
        self.assertEqual(root.first_name, "Root")
        self.assertTrue(root.check_password("root-pass"))

    @override_settings(SUPERADMIN_EMAIL="", SUPERADMIN_PASSWORD="")
    def test_requires_credentials(self):
        with self.assertRaises(CommandError):
            call_command("bootstrap_superadmin", stdout=mock.MagicMock())
