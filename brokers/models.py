# brokers/models.py
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from common.validators import name_validator, phone_validator
from setup.models import Layout, TimeStamped

PERCENT_VALIDATORS = [MinValueValidator(0), MaxValueValidator(100)]


def default_tds_percent():
    return settings.BROKER_DEFAULT_TDS_PERCENT


class Broker(TimeStamped):
    """
    Referral agent / advisor. Bookings point at a broker; deleting the
    broker only clears that pointer.
    """

    name = models.CharField(max_length=120, validators=[name_validator])
    phone_number = models.CharField(max_length=10, validators=[phone_validator])
    address = models.TextField(blank=True)
    commission_rate = models.DecimalField(
        max_digits=7,
        decimal_places=2,
        default=0,
        validators=PERCENT_VALIDATORS,
        help_text="Per sq ft amount or percent of total cost, see BROKER_COMMISSION_MODE",
    )
    tds_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=default_tds_percent,
        validators=PERCENT_VALIDATORS,
    )
    reference_date = models.DateField(null=True, blank=True)
    layout = models.ForeignKey(
        Layout,
        on_delete=models.SET_NULL,
        related_name="brokers",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.name} ({self.phone_number})"
