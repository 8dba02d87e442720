from datetime import date
from decimal import Decimal
from itertools import count

from django.core.files.uploadedfile import SimpleUploadedFile

from accounts.models import Role, User
from booking.models import Booking, Gender, PaymentType
from brokers.models import Broker
from expenses.models import Expense, Other
from enquiry.models import Enquiry
from invoice import services as ledger
from invoice.models import Invoice
from plots.models import Plot
from setup.models import Layout

PDF_BYTES = b"%PDF-1.4\n1 0 obj<<>>endobj\ntrailer<<>>\n%%EOF\n"
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
    b"\x08\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\xf8\x0f"
    b"\x00\x00\x01\x01\x00\x05\x18\xd8N\x00\x00\x00\x00IEND\xaeB`\x82"
)


class Factory:
    _seq = count(1)

    @classmethod
    def _n(cls):
        return next(cls._seq)

    @classmethod
    def user(cls, *, role=Role.ADMIN, password="pass1234", **kwargs):
        n = cls._n()
        defaults = {
            "username": f"user{n}",
            "email": f"user{n}@example.com",
            "is_active": True,
            "role": role,
        }
        defaults.update(kwargs)
        return User.objects.create_user(password=password, **defaults)

    @classmethod
    def layout(cls, **kwargs):
        n = cls._n()
        defaults = {"name": f"layout{n}"}
        defaults.update(kwargs)
        return Layout.objects.create(**defaults)

    @classmethod
    def plot(cls, *, layout=None, **kwargs):
        n = cls._n()
        defaults = {
            "layout": layout or cls.layout(),
            "plot_number": n,
            "area_sq_mt": Decimal("92.903"),
            "area_sq_ft": Decimal("1000.00000"),
            "rate_per_sq_ft": Decimal("500.00"),
        }
        defaults.update(kwargs)
        return Plot.objects.create(**defaults)

    @classmethod
    def broker(cls, **kwargs):
        defaults = {
            "name": "Ravi Kumar",
            "phone_number": "9876543210",
            "address": "MG Road",
            "commission_rate": Decimal("50.00"),
            "tds_percentage": Decimal("5.00"),
        }
        defaults.update(kwargs)
        return Broker.objects.create(**defaults)

    @classmethod
    def booking(cls, *, plot=None, with_invoice=True, **kwargs):
        plot = plot or cls.plot()
        rate = kwargs.pop("rate_per_sq_ft", plot.rate_per_sq_ft)
        defaults = {
            "buyer_name": "Asha Verma",
            "phone_number": "9123456780",
            "address": "12 Lake View",
            "date_of_birth": date(1990, 5, 17),
            "gender": Gender.FEMALE,
            "email": "asha@example.com",
            "plot": plot,
            "rate_per_sq_ft": rate,
            "total_cost": (plot.area_sq_ft * rate).quantize(Decimal("0.01")),
            "first_payment": Decimal("100000.00"),
            "payment_type": PaymentType.CASH,
            "narration": "Token amount",
            "booking_date": date(2025, 1, 10),
        }
        defaults.update(kwargs)
        booking = Booking.objects.create(**defaults)
        if with_invoice:
            invoice = Invoice.objects.create(booking=booking)
            ledger.seed_booking_payment(invoice)
        return booking

    @classmethod
    def expense(cls, *, layout=None, **kwargs):
        n = cls._n()
        defaults = {
            "layout": layout or cls.layout(),
            "description": f"Fencing batch {n}",
            "name": "Suresh",
            "amount": Decimal("10000.00"),
            "tds": Decimal("2.00"),
            "date": date(2025, 2, 1),
        }
        defaults.update(kwargs)
        return Expense.objects.create(**defaults)

    @classmethod
    def other(cls, **kwargs):
        defaults = {
            "description": "Office rent",
            "name": "Landlord",
            "amount": Decimal("20000.00"),
            "tds": Decimal("10.00"),
        }
        defaults.update(kwargs)
        return Other.objects.create(**defaults)

    @classmethod
    def enquiry(cls, *, layout=None, **kwargs):
        defaults = {
            "layout": layout or cls.layout(),
            "name": "Meena Rao",
            "phone_number": "9000000001",
            "message": "Corner plot?",
        }
        defaults.update(kwargs)
        return Enquiry.objects.create(**defaults)

    @staticmethod
    def pdf_file(name="doc.pdf"):
        return SimpleUploadedFile(name, PDF_BYTES, content_type="application/pdf")

    @staticmethod
    def png_file(name="photo.png"):
        return SimpleUploadedFile(name, PNG_BYTES, content_type="image/png")
