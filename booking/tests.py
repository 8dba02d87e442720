import os
from decimal import Decimal
from unittest import mock

from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse

from booking.models import Booking, BookingDocument, DeletedContact
from brokers.models import Broker
from invoice import services as ledger
from invoice.models import Invoice
from plots.models import PlotStatus
from tests.base import BaseAPITestCase
from tests.factories import Factory


class BookingCreateTests(BaseAPITestCase):
    def setUp(self):
        super().setUp()
        self.user = self.login_as(self.make_user())
        self.plot = Factory.plot()  # 1000 sq ft @ 500

    def _payload(self, **overrides):
        payload = {
            "buyer_name": "Asha Verma",
            "phone_number": "9123456780",
            "address": "12 Lake View",
            "date_of_birth": "1990-05-17",
            "gender": "Female",
            "email": "asha@example.com",
            "plot": self.plot.id,
            "total_cost": "500000.00",
            "rate_per_sq_ft": "500.00",
            "first_payment": "100000.00",
            "payment_type": "Cash",
            "narration": "Token amount",
            "booking_date": "2025-01-10",
        }
        payload.update(overrides)
        return payload

    def _stored_files(self):
        found = []
        for _root, _dirs, files in os.walk(self.media_root):
            found.extend(files)
        return found

    def test_create_books_plot_and_opens_ledger(self):
        response = self.client.post(reverse("booking-list"), self._payload(), format="json")

        self.assertEqual(response.status_code, 201, response.content)
        body = response.json()
        for key in ("buyer_name", "phone_number", "gender", "payment_type", "booking_date"):
            self.assertEqual(body[key], self._payload()[key])
        self.assertEqual(body["total_cost"], "500000.00")
        self.assertEqual(body["created_by"]["id"], self.user.id)
        self.assertEqual(body["invoice"]["total_paid"], "100000.00")
        self.assertEqual(body["invoice"]["balance"], "400000.00")
        self.assertEqual(body["invoice"]["payment_count"], 1)

        self.plot.refresh_from_db()
        self.assertEqual(self.plot.status, PlotStatus.SOLD)
        payment = Invoice.objects.get(booking_id=body["id"]).payments.get()
        self.assertTrue(payment.is_booking_payment)
        self.assertEqual(payment.amount, Decimal("100000.00"))

    def test_fetch_after_create_returns_submitted_values(self):
        payload = self._payload()
        created = self.client.post(reverse("booking-list"), payload, format="json")
        self.assertEqual(created.status_code, 201, created.content)

        fetched = self.client.get(reverse("booking-detail", args=[created.json()["id"]]))

        self.assertEqual(fetched.status_code, 200)
        body = fetched.json()
        for key, value in payload.items():
            self.assertEqual(body[key], value, key)
        self.assertEqual(body, created.json())

    def test_multipart_with_documents_and_inline_broker(self):
        payload = self._payload(total_cost="5,00,000")
        payload.update(
            {
                "broker_data[name]": "Ravi Kumar",
                "broker_data[phone_number]": "9876543210",
                "broker_data[commission_rate]": "50",
                "aadharCardFront": Factory.png_file("front.png"),
                "documents[panCard]": Factory.pdf_file("pan.pdf"),
            }
        )

        response = self.client.post(reverse("booking-list"), payload, format="multipart")

        self.assertEqual(response.status_code, 201, response.content)
        body = response.json()
        broker = Broker.objects.get()
        self.assertEqual(body["broker"], broker.id)
        self.assertEqual(body["broker_detail"]["name"], "Ravi Kumar")
        self.assertEqual([d["doc_type"] for d in body["documents"]], ["aadharCardFront", "panCard"])
        for doc in BookingDocument.objects.all():
            self.assertTrue(doc.file.name.startswith("documents/"))
            self.assertTrue(default_storage.exists(doc.file.name))

    def test_unknown_plot_is_400(self):
        response = self.client.post(reverse("booking-list"), self._payload(plot=999999), format="json")
        self.assertErrorShape(response, 400, "validation_error")
        self.assertEqual(self.error_fields(response), ["plot"])

    def test_booked_plot_is_409(self):
        Factory.booking(plot=self.plot)
        response = self.client.post(reverse("booking-list"), self._payload(), format="json")
        self.assertErrorShape(response, 409, "conflict")
        self.assertEqual(Booking.objects.filter(plot=self.plot).count(), 1)

    def test_total_must_match_area_times_rate(self):
        response = self.client.post(
            reverse("booking-list"), self._payload(total_cost="450000.00"), format="json"
        )
        self.assertErrorShape(response, 400)
        self.assertEqual(self.error_fields(response), ["total_cost"])

    def test_first_payment_cannot_exceed_total(self):
        response = self.client.post(
            reverse("booking-list"), self._payload(first_payment="600000.00"), format="json"
        )
        self.assertErrorShape(response, 400)
        self.assertEqual(self.error_fields(response), ["first_payment"])

    def test_buyer_fields_are_validated(self):
        response = self.client.post(
            reverse("booking-list"),
            self._payload(buyer_name="Asha 2", phone_number="12345", gender="X"),
            format="json",
        )
        self.assertErrorShape(response, 400)
        self.assertEqual(set(self.error_fields(response)), {"buyer_name", "phone_number", "gender"})

    def test_bad_document_type_rejected(self):
        payload = self._payload()
        payload["aadharCardBack"] = SimpleUploadedFile("back.txt", b"nope", content_type="text/plain")
        response = self.client.post(reverse("booking-list"), payload, format="multipart")

        self.assertErrorShape(response, 400)
        self.assertEqual(self.error_fields(response), ["aadharCardBack"])
        self.assertFalse(Booking.objects.exists())

    def test_failure_rolls_back_rows_and_files(self):
        payload = self._payload()
        payload["panCard"] = Factory.pdf_file("pan.pdf")

        with mock.patch(
            "invoice.services.seed_booking_payment", side_effect=RuntimeError("ledger down")
        ), self.assertLogs("common.exceptions", level="ERROR"):
            response = self.client.post(reverse("booking-list"), payload, format="multipart")

        self.assertErrorShape(response, 500, "server_error")
        self.assertFalse(Booking.objects.exists())
        self.assertFalse(BookingDocument.objects.exists())
        self.assertFalse(Invoice.objects.exists())
        self.assertEqual(self._stored_files(), [])


class BookingUpdateTests(BaseAPITestCase):
    def setUp(self):
        super().setUp()
        self.login_as(self.make_user())
        self.booking = Factory.booking()  # total 500000, first 100000
        self.invoice = self.booking.invoice

    def test_rate_change_recomputes_total(self):
        response = self.client.patch(
            reverse("booking-detail", args=[self.booking.id]),
            {"rate_per_sq_ft": "600.00"},
            format="json",
        )

        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(response.json()["total_cost"], "600000.00")
        self.assertEqual(response.json()["invoice"]["balance"], "500000.00")

    def test_first_payment_change_syncs_booking_payment(self):
        response = self.client.patch(
            reverse("booking-detail", args=[self.booking.id]),
            {"first_payment": "150000.00", "payment_type": "Online"},
            format="json",
        )

        self.assertEqual(response.status_code, 200, response.content)
        payment = self.invoice.payments.get(is_booking_payment=True)
        self.assertEqual(payment.amount, Decimal("150000.00"))
        self.assertEqual(payment.payment_type, "Online")
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.version, 2)

    def test_total_below_recorded_payments_is_rejected(self):
        ledger.add_payment(self.invoice.pk, {"amount": Decimal("300000.00"), "payment_type": "Cash"})

        response = self.client.patch(
            reverse("booking-detail", args=[self.booking.id]),
            {"rate_per_sq_ft": "300.00"},
            format="json",
        )

        self.assertErrorShape(response, 400)
        self.assertEqual(self.error_fields(response), ["total_cost"])
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.total_cost, Decimal("500000.00"))

    def test_move_to_booked_plot_is_409(self):
        other = Factory.booking()
        response = self.client.patch(
            reverse("booking-detail", args=[self.booking.id]),
            {"plot": other.plot_id},
            format="json",
        )
        self.assertErrorShape(response, 409)

    def test_search_and_filters(self):
        Factory.booking(buyer_name="Kiran Shah", phone_number="9000011111")

        by_name = self.client.get(reverse("booking-list"), {"search": "kiran"}).json()
        self.assertEqual([b["buyer_name"] for b in by_name], ["Kiran Shah"])

        by_layout = self.client.get(
            reverse("booking-list"), {"layout": self.booking.plot.layout.code}
        ).json()
        self.assertEqual([b["id"] for b in by_layout], [self.booking.id])

    def test_non_numeric_filter_is_400(self):
        response = self.client.get(reverse("booking-list"), {"plot": "abc"})
        self.assertErrorShape(response, 400, "validation_error")
        self.assertEqual(self.error_fields(response), ["plot"])


class BookingDeleteRestoreTests(BaseAPITestCase):
    def setUp(self):
        super().setUp()
        self.superadmin = self.login_as(self.make_superadmin())
        self.broker = Factory.broker()
        self.booking = Factory.booking(broker=self.broker)
        self.plot = self.booking.plot
        ledger.add_payment(
            self.booking.invoice.pk, {"amount": Decimal("50000.00"), "payment_type": "Online"}
        )

    def _delete(self):
        with self.captureOnCommitCallbacks(execute=True):
            return self.client.delete(reverse("booking-detail", args=[self.booking.id]))

    def test_delete_archives_and_frees_plot(self):
        response = self._delete()

        self.assertEqual(response.status_code, 200, response.content)
        archive = DeletedContact.objects.get()
        self.assertEqual(response.json()["deleted_contact_id"], archive.id)
        self.assertEqual(archive.original_id, self.booking.id)
        self.assertEqual(archive.buyer_name, self.booking.buyer_name)
        self.assertEqual(archive.snapshot["broker_id"], self.broker.id)
        self.assertEqual(len(archive.snapshot["payments"]), 2)

        self.assertFalse(Booking.objects.exists())
        self.assertFalse(Invoice.objects.exists())
        self.plot.refresh_from_db()
        self.assertEqual(self.plot.status, PlotStatus.AVAILABLE)

    def test_delete_removes_document_files(self):
        doc = BookingDocument(booking=self.booking, doc_type="panCard", original_name="pan.pdf")
        doc.file.save("pan.pdf", Factory.pdf_file(), save=True)
        name = doc.file.name
        self.assertTrue(default_storage.exists(name))

        self._delete()
        self.assertFalse(default_storage.exists(name))

    def test_restore_recreates_booking_and_ledger(self):
        self._delete()
        archive = DeletedContact.objects.get()

        response = self.client.post(reverse("deleted-contact-restore", args=[archive.id]))

        self.assertEqual(response.status_code, 201, response.content)
        body = response.json()
        self.assertEqual(body["buyer_name"], self.booking.buyer_name)
        self.assertEqual(body["plot"], self.plot.id)
        self.assertEqual(body["broker"], self.broker.id)
        self.assertEqual(body["total_cost"], "500000.00")
        self.assertEqual(body["invoice"]["total_paid"], "150000.00")
        self.assertFalse(DeletedContact.objects.exists())

        restored = Booking.objects.get()
        amounts = [p.amount for p in ledger.ordered_payments(restored.invoice)]
        self.assertEqual(amounts, [Decimal("100000.00"), Decimal("50000.00")])

    def test_restore_onto_rebooked_plot_is_409(self):
        self._delete()
        archive = DeletedContact.objects.get()
        Factory.booking(plot=self.plot, buyer_name="Someone Else")

        response = self.client.post(reverse("deleted-contact-restore", args=[archive.id]))
        self.assertErrorShape(response, 409, "conflict")
        self.assertTrue(DeletedContact.objects.filter(pk=archive.pk).exists())

    def test_restore_after_plot_removed_is_409(self):
        self._delete()
        archive = DeletedContact.objects.get()
        self.plot.delete()

        response = self.client.post(reverse("deleted-contact-restore", args=[archive.id]))
        self.assertErrorShape(response, 409)

    def test_deleted_contacts_are_superadmin_only(self):
        self._delete()
        listing = self.client.get(reverse("deleted-contact-list"))
        self.assertEqual(len(listing.json()), 1)

        self.login_as(self.make_user())
        self.assertErrorShape(self.client.get(reverse("deleted-contact-list")), 403)
