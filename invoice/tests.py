from datetime import date
from decimal import Decimal

from django.urls import reverse

from invoice import services as ledger
from invoice.models import Invoice, Payment
from tests.base import BaseAPITestCase
from tests.factories import Factory


class LedgerApiTests(BaseAPITestCase):
    """Booking of 500000 with a first payment of 100000."""

    def setUp(self):
        super().setUp()
        self.login_as(self.make_user())
        self.booking = Factory.booking()
        self.invoice = self.booking.invoice

    def _add(self, amount, **extra):
        body = {"amount": amount, "payment_type": "Online", "payment_date": "2025-02-01"}
        body.update(extra)
        return self.client.post(
            reverse("invoice-add-payment", args=[self.invoice.id]), body, format="json"
        )

    def _amounts(self):
        return [p.amount for p in ledger.ordered_payments(self.invoice)]

    def test_payments_accumulate_in_order(self):
        self._add("200000")
        response = self._add("150000")

        self.assertEqual(response.status_code, 200, response.content)
        body = response.json()
        self.assertEqual(body["summary"]["total_paid"], "450000.00")
        self.assertEqual(body["summary"]["balance"], "50000.00")
        self.assertEqual(
            [(p["label"], p["amount"]) for p in body["payments"]],
            [("1st", "100000.00"), ("2nd", "200000.00"), ("3rd", "150000.00")],
        )
        self.assertEqual(body["version"], 3)

    def test_edit_by_index_touches_only_that_payment(self):
        self._add("200000")
        self._add("150000")
        before = [p.pk for p in ledger.ordered_payments(self.invoice)]

        response = self._add("120000", payment_index=1, payment_type="Cheque")

        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(
            self._amounts(),
            [Decimal("100000.00"), Decimal("120000.00"), Decimal("150000.00")],
        )
        self.assertEqual([p.pk for p in ledger.ordered_payments(self.invoice)], before)
        self.assertEqual(Payment.objects.get(pk=before[1]).payment_type, "Cheque")

    def test_camel_case_payment_index(self):
        self._add("200000")
        response = self._add("180000", paymentIndex=1)
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(self._amounts()[1], Decimal("180000.00"))

    def test_delete_by_index_keeps_the_rest(self):
        self._add("200000")
        self._add("150000")
        first, _second, third = [p.pk for p in ledger.ordered_payments(self.invoice)]

        response = self.client.delete(
            reverse("invoice-delete-payment-at", args=[self.invoice.id, 1])
        )

        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual([p["id"] for p in response.json()["payments"]], [first, third])
        self.assertEqual(response.json()["summary"]["total_paid"], "250000.00")

    def test_index_out_of_range_is_404(self):
        response = self._add("1000", payment_index=7)
        self.assertErrorShape(response, 404)

    def test_payments_cannot_exceed_total_cost(self):
        response = self._add("400000.01")

        self.assertErrorShape(response, 400, "validation_error")
        self.assertEqual(self.error_fields(response), ["amount"])
        self.assertEqual(self.invoice.payments.count(), 1)

    def test_paying_exactly_the_balance_is_allowed(self):
        response = self._add("400000")
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(response.json()["summary"]["balance"], "0.00")

    def test_stale_version_is_409(self):
        self._add("10000", version=1)
        response = self._add("10000", version=1)

        self.assertErrorShape(response, 409, "conflict")
        self.assertEqual(self.invoice.payments.count(), 2)

    def test_non_integer_version_on_delete_is_400(self):
        self._add("10000")
        url = reverse("invoice-delete-payment-at", args=[self.invoice.id, 1])

        response = self.client.delete(f"{url}?version=abc")

        self.assertErrorShape(response, 400, "validation_error")
        self.assertEqual(self.error_fields(response), ["version"])
        self.assertEqual(self.invoice.payments.count(), 2)

    def test_zero_version_in_body_is_checked(self):
        self._add("10000")
        response = self.client.delete(
            reverse("invoice-delete-payment-at", args=[self.invoice.id, 1]),
            {"version": 0},
            format="json",
        )

        self.assertErrorShape(response, 409, "conflict")
        self.assertEqual(self.invoice.payments.count(), 2)

    def test_non_numeric_filters_are_400(self):
        for params in ({"booking": "abc"}, {"plot": "1x"}):
            response = self.client.get(reverse("invoice-list"), params)
            body = self.assertErrorShape(response, 400, "validation_error")
            self.assertEqual([e["field"] for e in body["errors"]], list(params))

    def test_booking_payment_cannot_be_deleted(self):
        response = self.client.delete(
            reverse("invoice-delete-payment-at", args=[self.invoice.id, 0])
        )
        self.assertErrorShape(response, 400)
        self.assertEqual(self.error_fields(response), ["payment"])
        self.assertEqual(self.invoice.payments.count(), 1)

    def test_editing_booking_payment_updates_booking(self):
        response = self._add("120000", payment_index=0, payment_type="Cheque")

        self.assertEqual(response.status_code, 200, response.content)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.first_payment, Decimal("120000.00"))
        self.assertEqual(self.booking.payment_type, "Cheque")

    def test_invoice_for_plot(self):
        response = self.client.get(reverse("invoice-by-plot", args=[self.booking.plot_id]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["id"], self.invoice.id)

        free_plot = Factory.plot()
        self.assertErrorShape(
            self.client.get(reverse("invoice-by-plot", args=[free_plot.id])), 404
        )

    def test_statement_pdf(self):
        self._add("200000")
        response = self.client.get(reverse("invoice-statement", args=[self.invoice.id]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "application/pdf")
        self.assertTrue(response.content.startswith(b"%PDF"))


class InvoiceCreateTests(BaseAPITestCase):
    def setUp(self):
        super().setUp()
        self.login_as(self.make_user())

    def test_create_seeds_booking_payment(self):
        booking = Factory.booking(with_invoice=False)
        response = self.client.post(reverse("invoice-list"), {"booking": booking.id}, format="json")

        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(response.json()["summary"]["total_paid"], "100000.00")
        self.assertTrue(Invoice.objects.get(booking=booking).payments.get().is_booking_payment)

    def test_second_invoice_for_booking_is_409(self):
        booking = Factory.booking()
        response = self.client.post(reverse("invoice-list"), {"booking": booking.id}, format="json")
        self.assertErrorShape(response, 409, "conflict")


class NestedPaymentTests(BaseAPITestCase):
    def setUp(self):
        super().setUp()
        self.login_as(self.make_user())
        self.booking = Factory.booking()
        self.invoice = self.booking.invoice

    def _list_url(self):
        return reverse("invoice-payment-list", kwargs={"invoice_pk": self.invoice.id})

    def _detail_url(self, payment_id, name="invoice-payment-detail"):
        return reverse(name, kwargs={"invoice_pk": self.invoice.id, "pk": payment_id})

    def test_append_edit_delete_by_id(self):
        created = self.client.post(
            self._list_url(), {"amount": "50000", "payment_type": "Cash"}, format="json"
        )
        self.assertEqual(created.status_code, 201, created.content)
        payment_id = created.json()["payments"][-1]["id"]

        edited = self.client.patch(self._detail_url(payment_id), {"amount": "75000"}, format="json")
        self.assertEqual(edited.status_code, 200, edited.content)
        self.assertEqual(Payment.objects.get(pk=payment_id).amount, Decimal("75000.00"))

        listing = self.client.get(self._list_url()).json()
        self.assertEqual([p["label"] for p in listing], ["1st", "2nd"])

        deleted = self.client.delete(self._detail_url(payment_id))
        self.assertEqual(deleted.status_code, 200)
        self.assertEqual(deleted.json()["summary"]["payment_count"], 1)

    def test_payment_of_other_invoice_is_404(self):
        other = Factory.booking().invoice.payments.get()
        self.assertEqual(self.client.get(self._detail_url(other.id)).status_code, 404)

    def test_receipt_pdf(self):
        payment = self.invoice.payments.get()
        response = self.client.get(self._detail_url(payment.id, "invoice-payment-receipt"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "application/pdf")
        self.assertTrue(response.content.startswith(b"%PDF"))


class MonthlyRevenueTests(BaseAPITestCase):
    def setUp(self):
        super().setUp()
        self.login_as(self.make_user())
        invoice = Factory.booking(booking_date=date(2025, 1, 10)).invoice  # 100000 in Jan
        ledger.add_payment(
            invoice.pk, {"amount": Decimal("20000"), "payment_type": "Cash", "payment_date": date(2025, 1, 25)}
        )
        ledger.add_payment(
            invoice.pk, {"amount": Decimal("30000"), "payment_type": "Cash", "payment_date": date(2025, 3, 2)}
        )
        other = Factory.booking(booking_date=date(2024, 12, 5)).invoice
        self.assertEqual(other.payments.count(), 1)

    def test_grouped_by_month(self):
        rows = ledger.monthly_revenue(year=2025)
        self.assertEqual(
            rows,
            [
                {"month": "2025-01", "total_revenue": Decimal("120000.00")},
                {"month": "2025-03", "total_revenue": Decimal("30000.00")},
            ],
        )

    def test_endpoint(self):
        response = self.client.get(reverse("invoice-monthly-revenue"))
        self.assertEqual(
            response.json(),
            [
                {"month": "2024-12", "total_revenue": "100000.00"},
                {"month": "2025-01", "total_revenue": "120000.00"},
                {"month": "2025-03", "total_revenue": "30000.00"},
            ],
        )

    def test_bad_year_is_400(self):
        response = self.client.get(reverse("invoice-monthly-revenue"), {"year": "twenty"})
        self.assertErrorShape(response, 400)
