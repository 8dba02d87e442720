import common.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("setup", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Enquiry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=150, validators=[common.validators.name_validator])),
                ("phone_number", models.CharField(max_length=10, validators=[common.validators.phone_validator])),
                ("address", models.TextField(blank=True)),
                ("reference", models.CharField(blank=True, max_length=150)),
                ("message", models.TextField()),
                ("date", models.DateField(default=django.utils.timezone.localdate)),
                (
                    "layout",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="enquiries",
                        to="setup.layout",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "enquiries",
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
