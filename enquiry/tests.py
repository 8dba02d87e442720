from django.urls import reverse

from enquiry.models import Enquiry
from tests.base import BaseAPITestCase
from tests.factories import Factory


class EnquiryApiTests(BaseAPITestCase):
    def setUp(self):
        super().setUp()
        self.login_as(self.make_user())
        self.layout = Factory.layout(name="layout2")

    def _payload(self, **overrides):
        payload = {
            "name": "Meena Rao",
            "phone_number": "9000000001",
            "address": "Station Road",
            "reference": "Newspaper",
            "message": "Looking for an east facing plot",
            "layout": self.layout.id,
            "date": "2025-04-02",
        }
        payload.update(overrides)
        return payload

    def test_create(self):
        response = self.client.post(reverse("enquiry-list"), self._payload(), format="json")
        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(response.json()["layout_code"], "LAYOUT2")

    def test_validation(self):
        response = self.client.post(
            reverse("enquiry-list"),
            self._payload(name="Meena_1", phone_number="98765", message=""),
            format="json",
        )
        self.assertErrorShape(response, 400, "validation_error")
        self.assertEqual(set(self.error_fields(response)), {"name", "phone_number", "message"})
        self.assertFalse(Enquiry.objects.exists())

    def test_layout_is_required(self):
        payload = self._payload()
        payload.pop("layout")
        response = self.client.post(reverse("enquiry-list"), payload, format="json")
        self.assertEqual(self.error_fields(response), ["layout"])

    def test_filter_by_layout_and_search(self):
        mine = Factory.enquiry(layout=self.layout, name="Gopal Iyer")
        Factory.enquiry(layout=self.layout, name="Meena Rao")
        Factory.enquiry(name="Gopal Iyer")

        response = self.client.get(reverse("enquiry-list"), {"layout": "LAYOUT2", "search": "gopal"})
        self.assertEqual([e["id"] for e in response.json()], [mine.id])

    def test_update_and_delete(self):
        enquiry = Factory.enquiry(layout=self.layout)
        response = self.client.patch(
            reverse("enquiry-detail", args=[enquiry.id]), {"reference": "Site visit"}, format="json"
        )
        self.assertEqual(response.json()["reference"], "Site visit")

        response = self.client.delete(reverse("enquiry-detail", args=[enquiry.id]))
        self.assertEqual(response.status_code, 204)
