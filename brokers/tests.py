from decimal import Decimal

from django.test import SimpleTestCase, override_settings
from django.urls import reverse

from booking.models import Booking
from brokers.models import Broker
from brokers.utils import PERCENT, PER_SQFT, gross_commission
from tests.base import BaseAPITestCase
from tests.factories import Factory


class GrossCommissionTests(SimpleTestCase):
    def test_per_sqft(self):
        self.assertEqual(
            gross_commission(Decimal("50"), area_sq_ft=Decimal("1200.5"), total_cost=0, mode=PER_SQFT),
            Decimal("60025.00"),
        )

    def test_percent(self):
        self.assertEqual(
            gross_commission(Decimal("2.5"), area_sq_ft=0, total_cost=Decimal("480000"), mode=PERCENT),
            Decimal("12000.00"),
        )

    @override_settings(BROKER_COMMISSION_MODE="percent")
    def test_mode_defaults_to_setting(self):
        self.assertEqual(
            gross_commission(Decimal("10"), area_sq_ft=Decimal("1000"), total_cost=Decimal("1000")),
            Decimal("100.00"),
        )


class BrokerApiTests(BaseAPITestCase):
    def setUp(self):
        super().setUp()
        self.login_as(self.make_user())

    def _payload(self, **overrides):
        payload = {
            "name": "Ravi Kumar",
            "phone_number": "9876543210",
            "address": "MG Road",
            "commission_rate": "50",
            "tds_percentage": "5",
        }
        payload.update(overrides)
        return payload

    def test_create_broker(self):
        response = self.client.post(reverse("broker-list"), self._payload(), format="json")
        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(response.json()["plots"], [])

    def test_tds_defaults_from_settings(self):
        payload = self._payload()
        payload.pop("tds_percentage")
        response = self.client.post(reverse("broker-list"), payload, format="json")
        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(Broker.objects.get().tds_percentage, Decimal("5.00"))

    def test_name_must_be_letters_and_spaces(self):
        response = self.client.post(reverse("broker-list"), self._payload(name="John3"), format="json")
        self.assertErrorShape(response, 400, "validation_error")
        self.assertEqual(self.error_fields(response), ["name"])

    def test_phone_must_be_ten_digits(self):
        response = self.client.post(
            reverse("broker-list"), self._payload(phone_number="12345"), format="json"
        )
        self.assertErrorShape(response, 400)
        self.assertEqual(self.error_fields(response), ["phone_number"])

    def test_commission_rate_range(self):
        response = self.client.post(
            reverse("broker-list"), self._payload(commission_rate="150"), format="json"
        )
        self.assertErrorShape(response, 400)
        self.assertIn("commission_rate", self.error_fields(response))

    def test_list_embeds_linked_plots(self):
        broker = Factory.broker()
        booking = Factory.booking(broker=broker)

        response = self.client.get(reverse("broker-list"))
        row = response.json()[0]
        self.assertEqual(row["id"], broker.id)
        self.assertEqual(
            row["plots"],
            [
                {
                    "id": booking.plot_id,
                    "plot_number": booking.plot.plot_number,
                    "layout": booking.plot.layout.code,
                    "booking_id": booking.id,
                }
            ],
        )

    def test_delete_keeps_bookings(self):
        broker = Factory.broker()
        booking = Factory.booking(broker=broker)

        response = self.client.delete(reverse("broker-detail", args=[broker.id]))
        self.assertEqual(response.status_code, 204)
        booking.refresh_from_db()
        self.assertIsNone(booking.broker_id)
        self.assertTrue(Booking.objects.filter(pk=booking.pk).exists())

    def test_bookings_with_commission(self):
        broker = Factory.broker(commission_rate=Decimal("50"), tds_percentage=Decimal("5"))
        Factory.booking(broker=broker)
        Factory.booking(broker=broker)

        response = self.client.get(reverse("broker-bookings", args=[broker.id]))
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(len(body["bookings"]), 2)
        self.assertEqual(
            body["bookings"][0]["commission"],
            {"gross_amount": "50000.00", "tds_amount": "2500.00", "net_amount": "47500.00"},
        )
        self.assertEqual(
            body["totals"],
            {"gross_amount": "100000.00", "tds_amount": "5000.00", "net_amount": "95000.00"},
        )

    @override_settings(BROKER_COMMISSION_MODE="PERCENT")
    def test_bookings_with_percent_commission(self):
        broker = Factory.broker(commission_rate=Decimal("2"), tds_percentage=Decimal("10"))
        Factory.booking(broker=broker)  # total 500000

        body = self.client.get(reverse("broker-bookings", args=[broker.id])).json()
        self.assertEqual(
            body["totals"],
            {"gross_amount": "10000.00", "tds_amount": "1000.00", "net_amount": "9000.00"},
        )
