# setup/models
from django.conf import settings
from django.core.validators import RegexValidator
from django.db import models
from django.utils.text import slugify


class TimeStamped(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class NamedLookup(TimeStamped):
    name = models.CharField(max_length=100, unique=True)
    code = models.CharField(
        max_length=50,
        unique=True,
        db_index=True,
        blank=True,
        validators=[RegexValidator(r"^[A-Z0-9_]+$", "Use only A–Z, 0–9 and _")],
        help_text="Stable programmatic code, e.g. LAYOUT1, PHASE_2",
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        abstract = True
        ordering = ["name"]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.code:
            self.code = slugify(self.name or "").replace("-", "_").upper()
        else:
            self.code = self.code.strip().replace("-", "_").upper()
        super().save(*args, **kwargs)


class Layout(NamedLookup):
    """
    A named subdivision / phase of plots ("layout1", "layout2").
    Scopes plots, enquiries, expenses and layout resources.
    """
    description = models.TextField(blank=True)

    class Meta(NamedLookup.Meta):
        pass


def layout_resource_upload_to(instance, filename):
    from common.utils import timestamped_upload_name

    return timestamped_upload_name("resources", filename)


class LayoutResource(TimeStamped):
    """Maps, approvals and other documents uploaded against a layout."""

    layout = models.ForeignKey(
        Layout,
        on_delete=models.CASCADE,
        related_name="resources",
    )
    file = models.FileField(upload_to=layout_resource_upload_to)
    original_name = models.CharField(max_length=255)
    file_type = models.CharField(max_length=100)
    file_size = models.PositiveIntegerField()
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="layout_resources",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.layout} · {self.original_name}"

    @property
    def upload_date(self):
        return self.created_at
