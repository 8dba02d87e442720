import os
import time

from django.core import mail
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.db import IntegrityError
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny
from rest_framework.test import APIRequestFactory
from rest_framework.views import APIView

from accounts.models import PasswordResetToken
from booking.models import BookingDocument, DocumentType
from common.exceptions import ConflictError, flatten_errors
from common.pdf_utils import media_link_callback
from common.tasks import reap_orphaned_uploads, send_password_reset_email
from common.utils import clean_filename, filter_by_layout, ordinal, timestamped_upload_name
from plots.models import Plot
from tests.base import BaseAPITestCase
from tests.factories import Factory


def _view_raising(exc):
    class _Boom(APIView):
        permission_classes = [AllowAny]
        authentication_classes = []

        def get(self, request):
            raise exc

    return _Boom.as_view()


class ErrorShapeTests(BaseAPITestCase):
    def setUp(self):
        super().setUp()
        self.factory = APIRequestFactory()

    def test_flatten_errors_builds_dotted_paths(self):
        detail = {
            "buyer_name": ["Only alphabets and spaces are allowed."],
            "broker_data": {"phone_number": ["Phone number should be exactly 10 digits."]},
            "payments": [{}, {"amount": ["Required."]}],
        }
        fields = [e["field"] for e in flatten_errors(detail)]
        self.assertEqual(fields, ["buyer_name", "broker_data.phone_number", "payments.1.amount"])

    def test_validation_error_is_400_with_field_list(self):
        response = _view_raising(ValidationError({"phone_number": ["bad"]}))(self.factory.get("/x"))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "validation_error")
        self.assertEqual(response.data["message"], "bad")
        self.assertEqual(response.data["errors"], [{"field": "phone_number", "message": "bad"}])

    def test_conflict_error_is_409(self):
        response = _view_raising(ConflictError("Plot 5 is already booked."))(self.factory.get("/x"))
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["code"], "conflict")
        self.assertEqual(response.data["message"], "Plot 5 is already booked.")

    def test_integrity_error_is_409(self):
        response = _view_raising(IntegrityError("UNIQUE constraint failed"))(self.factory.get("/x"))
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["code"], "conflict")

    def test_unexpected_error_is_generic_500(self):
        with self.assertLogs("common.exceptions", level="ERROR"):
            response = _view_raising(RuntimeError("db password is hunter2"))(self.factory.get("/x"))
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["message"], "Internal Server Error")
        self.assertNotIn("hunter2", str(response.data))


class UtilsTests(BaseAPITestCase):
    def test_ordinal_labels(self):
        self.assertEqual(
            [ordinal(n) for n in (1, 2, 3, 4, 11, 12, 13, 21, 22, 101)],
            ["1st", "2nd", "3rd", "4th", "11th", "12th", "13th", "21st", "22nd", "101st"],
        )

    def test_clean_filename(self):
        self.assertEqual(clean_filename("My Plan (v2).pdf"), "My-Plan-v2.pdf")
        self.assertEqual(clean_filename("../../etc/passwd"), "passwd")

    def test_timestamped_upload_name(self):
        name = timestamped_upload_name("resources", "site map.png")
        self.assertRegex(name, r"^resources/\d{13}-site-map\.png$")

    def test_filter_by_layout_accepts_id_or_code(self):
        a = Factory.layout(name="Layout One")
        b = Factory.layout(name="Layout Two")
        Factory.plot(layout=a)
        Factory.plot(layout=b)

        by_id = filter_by_layout(Plot.objects.all(), str(a.id))
        by_code = filter_by_layout(Plot.objects.all(), "layout_two")

        self.assertEqual({p.layout_id for p in by_id}, {a.id})
        self.assertEqual({p.layout_id for p in by_code}, {b.id})
        self.assertEqual(filter_by_layout(Plot.objects.all(), "").count(), 2)


class TaskTests(BaseAPITestCase):
    def _age(self, name, hours):
        path = default_storage.path(name)
        past = time.time() - hours * 3600
        os.utime(path, (past, past))

    def test_reaper_removes_only_old_unreferenced_files(self):
        booking = Factory.booking()
        doc = BookingDocument(booking=booking, doc_type=DocumentType.PAN_CARD)
        doc.file.save("pan.pdf", ContentFile(b"%PDF"), save=True)

        orphan_old = default_storage.save("documents/orphan-old.pdf", ContentFile(b"x"))
        orphan_new = default_storage.save("expenses/orphan-new.pdf", ContentFile(b"x"))
        self._age(doc.file.name, 48)
        self._age(orphan_old, 48)

        removed = reap_orphaned_uploads(max_age_hours=24)

        self.assertEqual(removed, [orphan_old])
        self.assertFalse(default_storage.exists(orphan_old))
        self.assertTrue(default_storage.exists(orphan_new))
        self.assertTrue(default_storage.exists(doc.file.name))

    def test_reaper_with_empty_upload_tree(self):
        self.assertEqual(reap_orphaned_uploads(), [])

    def test_password_reset_mail_contains_link(self):
        user = self.make_user(email="owner@example.com")
        token = PasswordResetToken.issue_for_user(user)

        self.assertTrue(send_password_reset_email(token.pk))

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["owner@example.com"])
        self.assertIn(f"/reset-password/{token.token}", mail.outbox[0].body)

    def test_password_reset_mail_for_missing_token(self):
        self.assertFalse(send_password_reset_email(999999))
        self.assertEqual(len(mail.outbox), 0)


class PdfAssetTests(BaseAPITestCase):
    def test_media_urls_resolve_to_media_root(self):
        default_storage.save("resources/map.png", ContentFile(b"png"))
        path = media_link_callback("/uploads/resources/map.png", None)
        self.assertEqual(path, os.path.join(self.media_root, "resources/map.png"))

    def test_other_urls_pass_through(self):
        self.assertEqual(
            media_link_callback("https://cdn.example.com/logo.png", None),
            "https://cdn.example.com/logo.png",
        )
