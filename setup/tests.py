from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings
from django.urls import reverse

from setup.models import Layout, LayoutResource
from tests.base import BaseAPITestCase
from tests.factories import Factory


class LayoutTests(BaseAPITestCase):
    def setUp(self):
        super().setUp()
        self.superadmin = self.make_superadmin()
        self.admin = self.make_user()

    def test_superadmin_creates_layout_with_derived_code(self):
        self.login_as(self.superadmin)
        response = self.client.post(reverse("layout-list"), {"name": "Phase One"}, format="json")

        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(response.json()["code"], "PHASE_ONE")
        self.assertTrue(Layout.objects.filter(code="PHASE_ONE").exists())

    def test_admin_can_read_but_not_write(self):
        layout = Factory.layout()
        Factory.plot(layout=layout)
        Factory.plot(layout=layout)
        self.login_as(self.admin)

        response = self.client.get(reverse("layout-list"))
        self.assertEqual(response.status_code, 200)
        row = next(r for r in response.json() if r["id"] == layout.id)
        self.assertEqual(row["plot_count"], 2)

        denied = self.client.post(reverse("layout-list"), {"name": "Phase Two"}, format="json")
        self.assertErrorShape(denied, 403)

    def test_layout_with_plots_cannot_be_deleted(self):
        layout = Factory.layout()
        Factory.plot(layout=layout)
        self.login_as(self.superadmin)

        response = self.client.delete(reverse("layout-detail", args=[layout.id]))
        self.assertErrorShape(response, 409, "conflict")
        self.assertTrue(Layout.objects.filter(pk=layout.pk).exists())


class LayoutResourceTests(BaseAPITestCase):
    def setUp(self):
        super().setUp()
        self.layout = Factory.layout(name="layout1")
        self.login_as(self.make_superadmin())

    def _upload(self, file_obj):
        return self.client.post(
            reverse("layout-resource-upload"),
            {"layout": self.layout.id, "file": file_obj},
            format="multipart",
        )

    def test_upload_pdf_and_list_by_layout_code(self):
        response = self._upload(Factory.pdf_file("Master Plan (v2).pdf"))

        self.assertEqual(response.status_code, 201, response.content)
        body = response.json()
        self.assertEqual(body["original_name"], "Master Plan (v2).pdf")
        self.assertEqual(body["file_type"], "application/pdf")
        resource = LayoutResource.objects.get(pk=body["id"])
        self.assertTrue(resource.file.name.startswith("resources/"))
        self.assertTrue(resource.file.name.endswith("-Master-Plan-v2.pdf"))
        self.assertTrue(default_storage.exists(resource.file.name))

        listing = self.client.get(reverse("layout-resource-list"), {"layout": "LAYOUT1"})
        self.assertEqual([r["id"] for r in listing.json()], [resource.id])

    def test_rejects_unsupported_type(self):
        bad = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")
        response = self._upload(bad)

        self.assertErrorShape(response, 400, "validation_error")
        self.assertIn("file", self.error_fields(response))
        self.assertFalse(LayoutResource.objects.exists())

    @override_settings(UPLOAD_MAX_BYTES=16)
    def test_rejects_oversized_file(self):
        response = self._upload(Factory.pdf_file())
        self.assertErrorShape(response, 400)
        self.assertIn("too large", response.json()["message"])

    def test_delete_removes_file(self):
        created = self._upload(Factory.png_file()).json()
        resource = LayoutResource.objects.get(pk=created["id"])
        name = resource.file.name

        response = self.client.delete(reverse("layout-resource-detail", args=[resource.id]))
        self.assertEqual(response.status_code, 204)
        self.assertFalse(default_storage.exists(name))

    def test_admin_cannot_upload(self):
        self.login_as(self.make_user())
        self.assertErrorShape(self._upload(Factory.pdf_file()), 403)
