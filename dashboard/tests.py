from datetime import date
from decimal import Decimal

from django.urls import reverse

from invoice import services as ledger
from tests.base import BaseAPITestCase
from tests.factories import Factory


class DashboardTests(BaseAPITestCase):
    def setUp(self):
        super().setUp()
        self.login_as(self.make_user())
        self.layout = Factory.layout(name="layout1")

        sold = Factory.plot(layout=self.layout)
        Factory.plot(layout=self.layout)
        booking = Factory.booking(plot=sold)  # 500000, first 100000 on 2025-01-10
        ledger.add_payment(
            booking.invoice.pk,
            {"amount": Decimal("50000"), "payment_type": "Online", "payment_date": date(2025, 2, 14)},
        )
        Factory.expense(layout=self.layout, amount=Decimal("10000"), tds=Decimal("2"))
        Factory.enquiry(layout=self.layout, date=date(2025, 2, 20))

        # noise in another layout
        Factory.booking()
        Factory.expense()

    def test_stats_for_layout(self):
        response = self.client.get(reverse("dashboard-stats"), {"layout": "layout1"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {
                "plots": {"total_plots": 2, "sold_plots": 1, "available_plots": 1},
                "bookings": {
                    "count": 1,
                    "booked_value": "500000.00",
                    "collected": "150000.00",
                    "outstanding": "350000.00",
                },
                "expenses": {"count": 1, "amount": "10000.00", "net_amount": "9800.00"},
                "enquiries": {"count": 1},
            },
        )

    def test_date_range_limits_bookings_and_payments(self):
        response = self.client.get(
            reverse("dashboard-stats"),
            {"layout": self.layout.id, "from_date": "2025-02-01", "to_date": "2025-02-28"},
        )
        body = response.json()
        self.assertEqual(body["bookings"]["count"], 0)
        self.assertEqual(body["bookings"]["collected"], "0.00")
        self.assertEqual(body["expenses"]["count"], 1)
        self.assertEqual(body["enquiries"]["count"], 1)

    def test_invalid_date_is_400(self):
        response = self.client.get(reverse("dashboard-stats"), {"from_date": "2025-13-40"})
        self.assertErrorShape(response, 400, "validation_error")
        self.assertEqual(self.error_fields(response), ["from_date"])

    def test_monthly_revenue_for_layout(self):
        response = self.client.get(
            reverse("dashboard-monthly-revenue"), {"layout": "layout1", "year": "2025"}
        )
        self.assertEqual(
            response.json(),
            [
                {"month": "2025-01", "total_revenue": "100000.00"},
                {"month": "2025-02", "total_revenue": "50000.00"},
            ],
        )

    def test_requires_login(self):
        self.client.force_authenticate(user=None)
        self.assertErrorShape(self.client.get(reverse("dashboard-stats")), 401)
