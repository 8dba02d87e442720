# expenses/models.py
from decimal import ROUND_HALF_UP, Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from common.utils import file_extension
from setup.models import Layout, TimeStamped


class LedgerEntry(TimeStamped):
    """amount, TDS % and the derived net amount."""

    description = models.CharField(max_length=255)
    name = models.CharField(max_length=150)
    amount = models.DecimalField(max_digits=14, decimal_places=2, validators=[MinValueValidator(0)])
    tds = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text="TDS percent deducted from amount",
    )
    net_amount = models.DecimalField(max_digits=14, decimal_places=2, editable=False, default=0)
    date = models.DateField(default=timezone.localdate)

    class Meta:
        abstract = True
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.name} · {self.amount}"

    def compute_net_amount(self) -> Decimal:
        amount = Decimal(self.amount or 0)
        tds = Decimal(self.tds or 0)
        return (amount - amount * tds / 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    def save(self, *args, **kwargs):
        self.net_amount = self.compute_net_amount()
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and ("amount" in update_fields or "tds" in update_fields):
            kwargs["update_fields"] = set(update_fields) | {"net_amount"}
        super().save(*args, **kwargs)


class ExpenseRole(models.TextChoices):
    LABOUR     = "labour", "Labour"
    MATERIAL   = "material", "Material"
    SERVICE    = "service", "Service"
    COMMISSION = "commission", "Commission"
    OTHER      = "other", "Other"


def expense_document_upload_to(instance, filename):
    # predictable per-expense name: expenses/expense-<id><ext>
    return f"expenses/expense-{instance.pk}{file_extension(filename)}"


class Expense(LedgerEntry):
    layout = models.ForeignKey(
        Layout,
        on_delete=models.PROTECT,
        related_name="expenses",
    )
    occupation = models.CharField(max_length=120, blank=True)
    role = models.CharField(max_length=20, choices=ExpenseRole.choices, blank=True)
    document = models.FileField(upload_to=expense_document_upload_to, blank=True)

    class Meta(LedgerEntry.Meta):
        pass


class Other(LedgerEntry):
    """Non-layout income / outgo rows."""

    class Meta(LedgerEntry.Meta):
        verbose_name = "other entry"
        verbose_name_plural = "other entries"
