import os
import tempfile
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.urls import reverse

from plots.models import Plot, PlotStatus
from tests.base import BaseAPITestCase
from tests.factories import Factory


class PlotApiTests(BaseAPITestCase):
    def setUp(self):
        super().setUp()
        self.superadmin = self.login_as(self.make_superadmin())
        self.layout = Factory.layout(name="layout1")

    def _payload(self, **overrides):
        payload = {
            "layout": self.layout.id,
            "plot_number": 5,
            "area_sq_mt": "92.903",
            "area_sq_ft": "1000.00000",
            "rate_per_sq_ft": "500.00",
        }
        payload.update(overrides)
        return payload

    def test_create_plot_is_available(self):
        response = self.client.post(reverse("plot-list"), self._payload(), format="json")

        self.assertEqual(response.status_code, 201, response.content)
        body = response.json()
        self.assertEqual(body["status"], PlotStatus.AVAILABLE)
        self.assertEqual(body["layout_code"], "LAYOUT1")
        self.assertIsNone(body["buyer"])

    def test_duplicate_plot_number_in_layout_is_409(self):
        Factory.plot(layout=self.layout, plot_number=5)

        response = self.client.post(reverse("plot-list"), self._payload(), format="json")
        self.assertErrorShape(response, 409, "conflict")
        self.assertEqual(Plot.objects.filter(layout=self.layout, plot_number=5).count(), 1)

    def test_same_number_in_other_layout_is_fine(self):
        Factory.plot(layout=Factory.layout(), plot_number=5)
        response = self.client.post(reverse("plot-list"), self._payload(), format="json")
        self.assertEqual(response.status_code, 201, response.content)

    def test_status_follows_booking(self):
        plot = Factory.plot(layout=self.layout)
        self.assertEqual(plot.status, PlotStatus.AVAILABLE)

        booking = Factory.booking(plot=plot)
        response = self.client.get(reverse("plot-detail", args=[plot.id]))
        body = response.json()
        self.assertEqual(body["status"], PlotStatus.SOLD)
        self.assertEqual(body["booking_id"], booking.id)
        self.assertEqual(body["buyer"], booking.buyer_name)
        self.assertEqual(body["contact"], booking.phone_number)

    def test_available_plots_and_stats(self):
        free = Factory.plot(layout=self.layout)
        sold = Factory.plot(layout=self.layout)
        Factory.booking(plot=sold)
        Factory.plot()  # another layout

        response = self.client.get(reverse("plot-available-plots"), {"layout": self.layout.id})
        self.assertEqual([p["id"] for p in response.json()], [free.id])

        stats = self.client.get(reverse("plot-stats"), {"layout": "layout1"}).json()
        self.assertEqual(stats, {"total_plots": 2, "sold_plots": 1, "available_plots": 1})

        sold_only = self.client.get(reverse("plot-list"), {"status": "sold"}).json()
        self.assertEqual([p["id"] for p in sold_only], [sold.id])

    def test_booked_plot_cannot_be_deleted(self):
        plot = Factory.plot(layout=self.layout)
        Factory.booking(plot=plot)

        response = self.client.delete(reverse("plot-detail", args=[plot.id]))
        self.assertErrorShape(response, 409, "conflict")
        self.assertTrue(Plot.objects.filter(pk=plot.pk).exists())

    def test_free_plot_can_be_deleted(self):
        plot = Factory.plot(layout=self.layout)
        response = self.client.delete(reverse("plot-detail", args=[plot.id]))
        self.assertEqual(response.status_code, 204)

    def test_admin_cannot_create_but_can_edit(self):
        plot = Factory.plot(layout=self.layout)
        self.login_as(self.make_user())

        denied = self.client.post(reverse("plot-list"), self._payload(), format="json")
        self.assertErrorShape(denied, 403)

        response = self.client.patch(
            reverse("plot-detail", args=[plot.id]), {"rate_per_sq_ft": "650.00"}, format="json"
        )
        self.assertEqual(response.status_code, 200, response.content)
        plot.refresh_from_db()
        self.assertEqual(plot.rate_per_sq_ft, Decimal("650.00"))


class SeedPlotsCommandTests(BaseAPITestCase):
    def _sheet(self, text):
        fd, path = tempfile.mkstemp(suffix=".csv")
        with os.fdopen(fd, "w") as fh:
            fh.write(text)
        self.addCleanup(os.remove, path)
        return path

    def test_upserts_plots_from_csv(self):
        layout = Factory.layout(name="layout2")
        Factory.plot(layout=layout, plot_number=1, area_sq_ft=Decimal("500.00000"))
        path = self._sheet(
            "plotNumber,areaSqMt,areaSqFt,rate\n"
            "1,92.903,1000,\n"
            "2,46.452,500,750\n"
        )

        out = StringIO()
        call_command("seed_plots", path, "--layout", "LAYOUT2", "--rate", "600", stdout=out)

        self.assertIn("1 plot(s) created, 1 updated", out.getvalue())
        first = Plot.objects.get(layout=layout, plot_number=1)
        second = Plot.objects.get(layout=layout, plot_number=2)
        self.assertEqual(first.area_sq_ft, Decimal("1000"))
        self.assertEqual(first.rate_per_sq_ft, Decimal("600"))
        self.assertEqual(second.rate_per_sq_ft, Decimal("750"))

    def test_missing_columns_abort(self):
        path = self._sheet("plot_number,area_sq_ft\n1,1000\n")
        with self.assertRaises(CommandError):
            call_command("seed_plots", path, "--layout", "layout3", stdout=StringIO())
        self.assertFalse(Plot.objects.exists())
