from django.db import models
from django.utils import timezone

from common.validators import name_validator, phone_validator
from setup.models import Layout, TimeStamped


class Enquiry(TimeStamped):
    """Walk-in / phone enquiry from a prospective buyer for one layout."""

    name = models.CharField(max_length=150, validators=[name_validator])
    phone_number = models.CharField(max_length=10, validators=[phone_validator])
    address = models.TextField(blank=True)
    reference = models.CharField(max_length=150, blank=True)
    message = models.TextField()
    layout = models.ForeignKey(
        Layout,
        on_delete=models.PROTECT,
        related_name="enquiries",
    )
    date = models.DateField(default=timezone.localdate)

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name_plural = "enquiries"

    def __str__(self):
        return f"{self.name} ({self.phone_number})"
