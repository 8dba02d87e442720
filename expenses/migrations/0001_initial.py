import django.core.validators
import django.db.models.deletion
import django.utils.timezone
import expenses.models
from django.db import migrations, models


def ledger_fields():
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
        ("description", models.CharField(max_length=255)),
        ("name", models.CharField(max_length=150)),
        (
            "amount",
            models.DecimalField(
                decimal_places=2, max_digits=14, validators=[django.core.validators.MinValueValidator(0)]
            ),
        ),
        (
            "tds",
            models.DecimalField(
                decimal_places=2,
                default=0,
                help_text="TDS percent deducted from amount",
                max_digits=5,
                validators=[
                    django.core.validators.MinValueValidator(0),
                    django.core.validators.MaxValueValidator(100),
                ],
            ),
        ),
        ("net_amount", models.DecimalField(decimal_places=2, default=0, editable=False, max_digits=14)),
        ("date", models.DateField(default=django.utils.timezone.localdate)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("setup", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Expense",
            fields=ledger_fields() + [
                ("occupation", models.CharField(blank=True, max_length=120)),
                (
                    "role",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("labour", "Labour"),
                            ("material", "Material"),
                            ("service", "Service"),
                            ("commission", "Commission"),
                            ("other", "Other"),
                        ],
                        max_length=20,
                    ),
                ),
                ("document", models.FileField(blank=True, upload_to=expenses.models.expense_document_upload_to)),
                (
                    "layout",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="expenses",
                        to="setup.layout",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Other",
            fields=ledger_fields(),
            options={
                "verbose_name": "other entry",
                "verbose_name_plural": "other entries",
                "ordering": ["-created_at", "-id"],
                "abstract": False,
            },
        ),
    ]
