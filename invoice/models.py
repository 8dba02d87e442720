# invoice/models.py
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from booking.models import Booking, PaymentType
from setup.models import TimeStamped


class Invoice(TimeStamped):
    """
    Payment ledger of one booking.
    `version` goes up on every ledger change; writers that send a stale
    version are rejected.
    """

    booking = models.OneToOneField(
        Booking,
        on_delete=models.CASCADE,
        related_name="invoice",
    )
    version = models.PositiveIntegerField(default=1)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"Invoice #{self.pk} · {self.booking.buyer_name}"


class Payment(TimeStamped):
    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.CASCADE,
        related_name="payments",
    )
    # display order; gaps are fine, ties broken by id
    order = models.PositiveIntegerField(default=1)
    amount = models.DecimalField(
        max_digits=14, decimal_places=2, validators=[MinValueValidator(0)]
    )
    payment_date = models.DateField(default=timezone.localdate)
    payment_type = models.CharField(max_length=10, choices=PaymentType.choices)
    narration = models.TextField(blank=True)
    is_booking_payment = models.BooleanField(default=False)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="payments_recorded",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ["order", "id"]
        indexes = [
            models.Index(fields=["invoice", "order"], name="inv_payment_order_idx"),
        ]

    def __str__(self):
        return f"{self.amount} on {self.payment_date} ({self.payment_type})"
