import booking.models
import common.validators
import django.core.serializers.json
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("brokers", "0001_initial"),
        ("plots", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("buyer_name", models.CharField(max_length=150, validators=[common.validators.name_validator])),
                ("phone_number", models.CharField(max_length=10, validators=[common.validators.phone_validator])),
                ("address", models.TextField()),
                ("date_of_birth", models.DateField(blank=True, null=True)),
                (
                    "gender",
                    models.CharField(
                        choices=[("Male", "Male"), ("Female", "Female"), ("Other", "Other")],
                        max_length=10,
                    ),
                ),
                ("email", models.EmailField(blank=True, max_length=254)),
                (
                    "total_cost",
                    models.DecimalField(
                        decimal_places=2, max_digits=14, validators=[django.core.validators.MinValueValidator(0)]
                    ),
                ),
                (
                    "rate_per_sq_ft",
                    models.DecimalField(
                        decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(0)]
                    ),
                ),
                (
                    "first_payment",
                    models.DecimalField(
                        decimal_places=2, max_digits=14, validators=[django.core.validators.MinValueValidator(0)]
                    ),
                ),
                (
                    "payment_type",
                    models.CharField(
                        choices=[("Cash", "Cash"), ("Cheque", "Cheque"), ("Online", "Online")],
                        max_length=10,
                    ),
                ),
                ("narration", models.TextField(blank=True)),
                ("booking_date", models.DateField(default=django.utils.timezone.localdate)),
                (
                    "broker",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bookings",
                        to="brokers.broker",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bookings_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "plot",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="booking",
                        to="plots.plot",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="BookingDocument",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "doc_type",
                    models.CharField(
                        choices=[
                            ("aadharCardFront", "Aadhar Card (Front)"),
                            ("aadharCardBack", "Aadhar Card (Back)"),
                            ("panCard", "PAN Card"),
                        ],
                        max_length=20,
                    ),
                ),
                ("file", models.FileField(upload_to=booking.models.booking_document_upload_to)),
                ("original_name", models.CharField(blank=True, max_length=255)),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="documents",
                        to="booking.booking",
                    ),
                ),
            ],
            options={
                "ordering": ["doc_type"],
                "constraints": [
                    models.UniqueConstraint(fields=("booking", "doc_type"), name="uniq_document_type_per_booking"),
                ],
            },
        ),
        migrations.CreateModel(
            name="DeletedContact",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("original_id", models.PositiveBigIntegerField(db_index=True)),
                ("buyer_name", models.CharField(max_length=150)),
                ("phone_number", models.CharField(max_length=10)),
                (
                    "snapshot",
                    models.JSONField(default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder),
                ),
                ("deleted_at", models.DateTimeField(auto_now_add=True)),
                (
                    "deleted_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="deleted_contacts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "plot",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="deleted_contacts",
                        to="plots.plot",
                    ),
                ),
            ],
            options={
                "ordering": ["-deleted_at", "-id"],
            },
        ),
    ]
