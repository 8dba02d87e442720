from datetime import date
from decimal import Decimal
from unittest import mock

from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse

from expenses.models import Expense, Other
from tests.base import BaseAPITestCase
from tests.factories import PDF_BYTES, Factory


class LedgerEntryTests(BaseAPITestCase):
    def test_net_amount_deducts_tds(self):
        expense = Factory.expense(amount=Decimal("10000"), tds=Decimal("2"))
        self.assertEqual(expense.net_amount, Decimal("9800.00"))

        expense.tds = Decimal("12.5")
        expense.save(update_fields=["tds"])
        expense.refresh_from_db()
        self.assertEqual(expense.net_amount, Decimal("8750.00"))

    def test_zero_tds(self):
        other = Factory.other(amount=Decimal("1234.56"), tds=Decimal("0"))
        self.assertEqual(other.net_amount, Decimal("1234.56"))


class ExpenseApiTests(BaseAPITestCase):
    def setUp(self):
        super().setUp()
        self.login_as(self.make_user())
        self.layout = Factory.layout(name="layout1")

    def test_create_computes_net_amount(self):
        response = self.client.post(
            reverse("expense-list"),
            {
                "layout": self.layout.id,
                "description": "Boundary wall",
                "name": "Suresh",
                "amount": "1,00,000",
                "tds": "1",
                "date": "2025-03-01",
                "role": "labour",
            },
            format="json",
        )

        self.assertEqual(response.status_code, 201, response.content)
        body = response.json()
        self.assertEqual(body["net_amount"], "99000.00")
        self.assertEqual(body["layout_code"], "LAYOUT1")
        self.assertIsNone(body["document_name"])

    def test_net_amount_is_read_only(self):
        expense = Factory.expense(layout=self.layout)
        self.client.patch(
            reverse("expense-detail", args=[expense.id]), {"net_amount": "1.00"}, format="json"
        )
        expense.refresh_from_db()
        self.assertEqual(expense.net_amount, Decimal("9800.00"))

    def test_tds_out_of_range(self):
        response = self.client.post(
            reverse("expense-list"),
            {"layout": self.layout.id, "description": "x", "name": "y", "amount": "10", "tds": "120"},
            format="json",
        )
        self.assertErrorShape(response, 400)
        self.assertEqual(self.error_fields(response), ["tds"])

    def test_filters(self):
        match = Factory.expense(layout=self.layout, role="material", date=date(2025, 3, 10))
        Factory.expense(layout=self.layout, role="labour", date=date(2025, 3, 10))
        Factory.expense(layout=self.layout, role="material", date=date(2025, 5, 1))
        Factory.expense(role="material", date=date(2025, 3, 10))

        response = self.client.get(
            reverse("expense-list"),
            {"layout": "layout1", "role": "material", "from": "2025-03-01", "to": "2025-03-31"},
        )
        self.assertEqual([e["id"] for e in response.json()], [match.id])

    def test_upload_serve_and_delete_document(self):
        expense = Factory.expense(layout=self.layout)

        uploaded = self.client.post(
            reverse("expense-upload", args=[expense.id]),
            {"file": Factory.pdf_file("bill scan.pdf")},
            format="multipart",
        )
        self.assertEqual(uploaded.status_code, 200, uploaded.content)
        filename = f"expense-{expense.id}.pdf"
        self.assertEqual(uploaded.json()["document_name"], filename)
        self.assertTrue(default_storage.exists(f"expenses/{filename}"))

        served = self.client.get(reverse("expense-document-file", args=[filename]))
        self.assertEqual(served.status_code, 200)
        self.assertEqual(served["Content-Type"], "application/pdf")
        self.assertEqual(b"".join(served.streaming_content), PDF_BYTES)
        served.close()

        removed = self.client.delete(reverse("expense-delete-document", args=[expense.id]))
        self.assertEqual(removed.status_code, 200)
        self.assertIsNone(removed.json()["document_name"])
        self.assertFalse(default_storage.exists(f"expenses/{filename}"))

        missing = self.client.get(reverse("expense-document-file", args=[filename]))
        self.assertErrorShape(missing, 404)

    def test_reupload_replaces_file(self):
        expense = Factory.expense(layout=self.layout)
        url = reverse("expense-upload", args=[expense.id])
        self.client.post(url, {"file": Factory.pdf_file()}, format="multipart")
        with self.captureOnCommitCallbacks(execute=True):
            self.client.post(url, {"file": Factory.png_file()}, format="multipart")

        expense.refresh_from_db()
        self.assertEqual(expense.document.name, f"expenses/expense-{expense.id}.png")
        self.assertFalse(default_storage.exists(f"expenses/expense-{expense.id}.pdf"))

    def test_reupload_same_extension_keeps_predictable_name(self):
        expense = Factory.expense(layout=self.layout)
        url = reverse("expense-upload", args=[expense.id])
        self.client.post(url, {"file": Factory.pdf_file("first.pdf")}, format="multipart")
        second = SimpleUploadedFile("second.pdf", PDF_BYTES + b"%v2\n", content_type="application/pdf")
        with self.captureOnCommitCallbacks(execute=True):
            self.client.post(url, {"file": second}, format="multipart")

        expense.refresh_from_db()
        name = f"expenses/expense-{expense.id}.pdf"
        self.assertEqual(expense.document.name, name)
        with default_storage.open(name, "rb") as fh:
            self.assertEqual(fh.read(), PDF_BYTES + b"%v2\n")
        self.assertEqual(default_storage.listdir("expenses")[1], [f"expense-{expense.id}.pdf"])

    def test_failed_reupload_keeps_previous_document(self):
        expense = Factory.expense(layout=self.layout)
        url = reverse("expense-upload", args=[expense.id])
        self.client.post(url, {"file": Factory.pdf_file()}, format="multipart")
        old_name = f"expenses/expense-{expense.id}.pdf"

        with mock.patch.object(
            Expense, "save", side_effect=RuntimeError("db down")
        ), self.assertLogs("common.exceptions", level="ERROR"):
            response = self.client.post(url, {"file": Factory.png_file()}, format="multipart")

        self.assertErrorShape(response, 500, "server_error")
        expense.refresh_from_db()
        self.assertEqual(expense.document.name, old_name)
        self.assertTrue(default_storage.exists(old_name))
        self.assertEqual(default_storage.listdir("expenses")[1], [f"expense-{expense.id}.pdf"])

    def test_bad_date_filter_is_400(self):
        response = self.client.get(reverse("expense-list"), {"from": "notadate"})
        body = self.assertErrorShape(response, 400, "validation_error")
        self.assertIn("from", [e["field"] for e in body["errors"]])

    def test_upload_rejects_other_types(self):
        expense = Factory.expense(layout=self.layout)
        response = self.client.post(
            reverse("expense-upload", args=[expense.id]),
            {"file": SimpleUploadedFile("a.txt", b"x", content_type="text/plain")},
            format="multipart",
        )
        self.assertErrorShape(response, 400)
        self.assertFalse(Expense.objects.get(pk=expense.pk).document)

    def test_delete_document_without_one_is_404(self):
        expense = Factory.expense(layout=self.layout)
        response = self.client.delete(reverse("expense-delete-document", args=[expense.id]))
        self.assertErrorShape(response, 404)

    def test_delete_expense_removes_document(self):
        expense = Factory.expense(layout=self.layout)
        self.client.post(
            reverse("expense-upload", args=[expense.id]),
            {"file": Factory.pdf_file()},
            format="multipart",
        )
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.delete(reverse("expense-detail", args=[expense.id]))

        self.assertEqual(response.status_code, 204)
        self.assertFalse(default_storage.exists(f"expenses/expense-{expense.id}.pdf"))


class OtherApiTests(BaseAPITestCase):
    def setUp(self):
        super().setUp()
        self.login_as(self.make_user())

    def test_crud(self):
        created = self.client.post(
            reverse("other-list"),
            {"description": "Office rent", "name": "Landlord", "amount": "20000", "tds": "10"},
            format="json",
        )
        self.assertEqual(created.status_code, 201, created.content)
        self.assertEqual(created.json()["net_amount"], "18000.00")
        other_id = created.json()["id"]

        updated = self.client.patch(
            reverse("other-detail", args=[other_id]), {"amount": "30000"}, format="json"
        )
        self.assertEqual(updated.json()["net_amount"], "27000.00")

        deleted = self.client.delete(reverse("other-detail", args=[other_id]))
        self.assertEqual(deleted.status_code, 204)
        self.assertFalse(Other.objects.exists())

    def test_date_range(self):
        Factory.other(date=date(2025, 1, 5))
        march = Factory.other(date=date(2025, 3, 5))

        response = self.client.get(reverse("other-list"), {"from": "2025-02-01"})
        self.assertEqual([o["id"] for o in response.json()], [march.id])
