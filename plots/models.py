# plots/models.py
from django.core.exceptions import ObjectDoesNotExist
from django.core.validators import MinValueValidator
from django.db import models

from setup.models import Layout, TimeStamped


class PlotStatus(models.TextChoices):
    AVAILABLE = "available", "Available"
    SOLD      = "sold", "Sold"


class PlotQuerySet(models.QuerySet):
    # status is never stored: a plot is sold iff a booking points at it
    def available(self):
        return self.filter(booking__isnull=True)

    def sold(self):
        return self.filter(booking__isnull=False)

    def with_status(self, status):
        if status == PlotStatus.SOLD:
            return self.sold()
        if status == PlotStatus.AVAILABLE:
            return self.available()
        return self


class Plot(TimeStamped):
    """
    Sellable land unit inside a layout.
    (layout, plot_number) is unique.
    """

    layout = models.ForeignKey(
        Layout,
        on_delete=models.PROTECT,
        related_name="plots",
    )
    plot_number = models.PositiveIntegerField()
    area_sq_mt = models.DecimalField(
        max_digits=12, decimal_places=3, validators=[MinValueValidator(0)]
    )
    area_sq_ft = models.DecimalField(
        max_digits=14, decimal_places=5, validators=[MinValueValidator(0)]
    )
    rate_per_sq_ft = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Default rate offered when booking this plot",
    )

    objects = PlotQuerySet.as_manager()

    class Meta:
        ordering = ["layout__name", "plot_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["layout", "plot_number"],
                name="uniq_plot_number_per_layout",
            ),
        ]

    def __str__(self):
        return f"{self.layout} · Plot {self.plot_number}"

    @property
    def current_booking(self):
        try:
            return self.booking
        except ObjectDoesNotExist:
            return None

    @property
    def status(self):
        return PlotStatus.SOLD if self.current_booking is not None else PlotStatus.AVAILABLE
