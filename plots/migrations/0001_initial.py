import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("setup", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Plot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("plot_number", models.PositiveIntegerField()),
                (
                    "area_sq_mt",
                    models.DecimalField(
                        decimal_places=3,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                (
                    "area_sq_ft",
                    models.DecimalField(
                        decimal_places=5,
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                (
                    "rate_per_sq_ft",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Default rate offered when booking this plot",
                        max_digits=12,
                        null=True,
                    ),
                ),
                (
                    "layout",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="plots",
                        to="setup.layout",
                    ),
                ),
            ],
            options={
                "ordering": ["layout__name", "plot_number"],
                "constraints": [
                    models.UniqueConstraint(fields=("layout", "plot_number"), name="uniq_plot_number_per_layout"),
                ],
            },
        ),
    ]
