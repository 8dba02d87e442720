# booking/models.py
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from brokers.models import Broker
from common.validators import name_validator, phone_validator
from plots.models import Plot
from setup.models import TimeStamped


class Gender(models.TextChoices):
    MALE   = "Male", "Male"
    FEMALE = "Female", "Female"
    OTHER  = "Other", "Other"


class PaymentType(models.TextChoices):
    CASH   = "Cash", "Cash"
    CHEQUE = "Cheque", "Cheque"
    ONLINE = "Online", "Online"


class DocumentType(models.TextChoices):
    AADHAR_FRONT = "aadharCardFront", "Aadhar Card (Front)"
    AADHAR_BACK  = "aadharCardBack", "Aadhar Card (Back)"
    PAN_CARD     = "panCard", "PAN Card"


class Booking(TimeStamped):
    """
    One buyer's booking of one plot.
    The plot is sold for as long as this row exists.
    """

    # ---- buyer ----
    buyer_name = models.CharField(max_length=150, validators=[name_validator])
    phone_number = models.CharField(max_length=10, validators=[phone_validator])
    address = models.TextField()
    date_of_birth = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=Gender.choices)
    email = models.EmailField(blank=True)

    # ---- what / through whom ----
    plot = models.OneToOneField(
        Plot,
        on_delete=models.PROTECT,
        related_name="booking",
    )
    broker = models.ForeignKey(
        Broker,
        on_delete=models.SET_NULL,
        related_name="bookings",
        null=True,
        blank=True,
    )

    # ---- money ----
    total_cost = models.DecimalField(max_digits=14, decimal_places=2, validators=[MinValueValidator(0)])
    rate_per_sq_ft = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    first_payment = models.DecimalField(max_digits=14, decimal_places=2, validators=[MinValueValidator(0)])
    payment_type = models.CharField(max_length=10, choices=PaymentType.choices)
    narration = models.TextField(blank=True)
    booking_date = models.DateField(default=timezone.localdate)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="bookings_created",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.buyer_name} · {self.plot}"

    @property
    def layout(self):
        return self.plot.layout


def booking_document_upload_to(instance, filename):
    from common.utils import timestamped_upload_name

    return timestamped_upload_name("documents", filename)


class BookingDocument(TimeStamped):
    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name="documents",
    )
    doc_type = models.CharField(max_length=20, choices=DocumentType.choices)
    file = models.FileField(upload_to=booking_document_upload_to)
    original_name = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ["doc_type"]
        constraints = [
            models.UniqueConstraint(
                fields=["booking", "doc_type"],
                name="uniq_document_type_per_booking",
            ),
        ]

    def __str__(self):
        return f"{self.booking_id} · {self.doc_type}"


class DeletedContact(models.Model):
    """
    Write-once archive of a deleted booking. `snapshot` keeps the booking
    fields, broker id and payments so a super admin can restore it.
    """

    original_id = models.PositiveBigIntegerField(db_index=True)
    buyer_name = models.CharField(max_length=150)
    phone_number = models.CharField(max_length=10)
    plot = models.ForeignKey(
        Plot,
        on_delete=models.SET_NULL,
        related_name="deleted_contacts",
        null=True,
        blank=True,
    )
    snapshot = models.JSONField(default=dict, encoder=DjangoJSONEncoder)
    deleted_at = models.DateTimeField(auto_now_add=True)
    deleted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="deleted_contacts",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ["-deleted_at", "-id"]

    def __str__(self):
        return f"{self.buyer_name} (booking #{self.original_id})"
