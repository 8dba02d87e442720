import shutil
import tempfile

from django.test import override_settings
from rest_framework.test import APITestCase

from accounts.models import Role

from .factories import Factory


class BaseAPITestCase(APITestCase):
    """
    Every test gets its own MEDIA_ROOT so uploads never touch ./uploads.
    """
    default_password = "pass1234"

    def setUp(self):
        super().setUp()
        self.media_root = tempfile.mkdtemp(prefix="plotbook-media-")
        self._media_override = override_settings(MEDIA_ROOT=self.media_root)
        self._media_override.enable()
        self.addCleanup(self._media_override.disable)
        self.addCleanup(shutil.rmtree, self.media_root, True)

    def make_user(self, *, role=Role.ADMIN, **kwargs):
        return Factory.user(role=role, password=self.default_password, **kwargs)

    def make_superadmin(self, **kwargs):
        return self.make_user(role=Role.SUPERADMIN, **kwargs)

    def login_as(self, user):
        self.client.force_authenticate(user=user)
        return user

    def assertErrorShape(self, response, status_code, code=None):
        self.assertEqual(response.status_code, status_code, response.content)
        body = response.json()
        self.assertIn("message", body)
        self.assertIn("errors", body)
        if code is not None:
            self.assertEqual(body["code"], code)
        return body

    def error_fields(self, response):
        return [e["field"] for e in response.json()["errors"]]
