from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from rest_framework import serializers

from brokers.models import Broker
from brokers.serializers import BrokerSerializer
from common.exceptions import ConflictError
from common.fields import CommaDecimalField
from common.utils import build_file_url
from invoice import services as ledger
from plots.models import Plot
from plots.serializers import PlotBriefSerializer
from .models import Booking, BookingDocument, DeletedContact

TWO_PLACES = Decimal("0.01")


def expected_total(plot, rate):
    return (Decimal(plot.area_sq_ft) * Decimal(rate)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class InlineBrokerSerializer(BrokerSerializer):
    """broker_data[...] sent with a booking creates a new broker."""

    class Meta(BrokerSerializer.Meta):
        fields = [
            "name",
            "phone_number",
            "address",
            "commission_rate",
            "tds_percentage",
            "reference_date",
            "layout",
        ]
        read_only_fields = []


class BookingDocumentSerializer(serializers.ModelSerializer):
    url = serializers.SerializerMethodField()

    class Meta:
        model = BookingDocument
        fields = ["id", "doc_type", "original_name", "url", "created_at"]

    def get_url(self, obj):
        return build_file_url(self.context.get("request"), obj.file)


# ---------------------------------------------------------
# Write (create / update)
# ---------------------------------------------------------
class BookingWriteSerializer(serializers.ModelSerializer):
    plot = serializers.PrimaryKeyRelatedField(queryset=Plot.objects.select_related("layout"))
    broker = serializers.PrimaryKeyRelatedField(
        queryset=Broker.objects.all(), required=False, allow_null=True
    )
    broker_data = InlineBrokerSerializer(required=False, write_only=True)

    total_cost = CommaDecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0.01"))
    rate_per_sq_ft = CommaDecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))
    first_payment = CommaDecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0.01"))

    class Meta:
        model = Booking
        fields = [
            "buyer_name",
            "phone_number",
            "address",
            "date_of_birth",
            "gender",
            "email",
            "plot",
            "broker",
            "broker_data",
            "total_cost",
            "rate_per_sq_ft",
            "first_payment",
            "payment_type",
            "narration",
            "booking_date",
        ]

    def validate_buyer_name(self, value):
        return value.strip()

    def _current(self, attrs, field):
        if field in attrs:
            return attrs[field]
        return getattr(self.instance, field, None)

    def validate(self, attrs):
        if attrs.get("broker") and attrs.get("broker_data"):
            raise serializers.ValidationError(
                {"broker_data": "Send either an existing broker or broker_data, not both."}
            )

        plot = self._current(attrs, "plot")

        # ---- plot still free? ----
        if "plot" in attrs:
            taken = Booking.objects.filter(plot=plot)
            if self.instance is not None:
                taken = taken.exclude(pk=self.instance.pk)
            if taken.exists():
                raise ConflictError(f"Plot {plot.plot_number} is already booked.")

        # ---- total = area x rate ----
        rate = self._current(attrs, "rate_per_sq_ft")
        cost_inputs_changed = any(k in attrs for k in ("plot", "rate_per_sq_ft", "total_cost"))
        if cost_inputs_changed:
            expected = expected_total(plot, rate)
            if "total_cost" not in attrs:
                # rate / plot changed on edit: recompute from the fixed area
                attrs["total_cost"] = expected
            elif abs(attrs["total_cost"] - expected) > settings.BOOKING_TOTAL_COST_TOLERANCE:
                raise serializers.ValidationError(
                    {
                        "total_cost": (
                            f"Total cost must equal area x rate "
                            f"({plot.area_sq_ft} x {rate} = {expected})."
                        )
                    }
                )

        # ---- 0 < first payment <= total ----
        total = self._current(attrs, "total_cost")
        first = self._current(attrs, "first_payment")
        if first is not None and total is not None and first > total:
            raise serializers.ValidationError(
                {"first_payment": "First payment cannot be more than the total cost."}
            )
        return attrs


# ---------------------------------------------------------
# Read
# ---------------------------------------------------------
class BookingSerializer(serializers.ModelSerializer):
    plot = serializers.PrimaryKeyRelatedField(read_only=True)
    plot_detail = PlotBriefSerializer(source="plot", read_only=True)
    layout = serializers.CharField(source="plot.layout.code", read_only=True)
    broker_detail = serializers.SerializerMethodField()
    documents = BookingDocumentSerializer(many=True, read_only=True)
    invoice = serializers.SerializerMethodField()
    created_by = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "buyer_name",
            "phone_number",
            "address",
            "date_of_birth",
            "gender",
            "email",
            "plot",
            "plot_detail",
            "layout",
            "broker",
            "broker_detail",
            "total_cost",
            "rate_per_sq_ft",
            "first_payment",
            "payment_type",
            "narration",
            "booking_date",
            "documents",
            "invoice",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_broker_detail(self, obj):
        if not obj.broker_id:
            return None
        b = obj.broker
        return {
            "id": b.id,
            "name": b.name,
            "phone_number": b.phone_number,
            "commission_rate": str(b.commission_rate),
            "tds_percentage": str(b.tds_percentage),
        }

    def get_invoice(self, obj):
        invoice = getattr(obj, "invoice", None)
        if invoice is None:
            return None
        summary = {k: str(v) if isinstance(v, Decimal) else v for k, v in ledger.ledger_summary(invoice).items()}
        summary.update({"id": invoice.id, "version": invoice.version})
        return summary

    def get_created_by(self, obj):
        u = obj.created_by
        if not u:
            return None
        return {"id": u.id, "email": u.email, "name": u.get_full_name() or u.username}


class DeletedContactSerializer(serializers.ModelSerializer):
    plot_number = serializers.SerializerMethodField()
    deleted_by = serializers.SerializerMethodField()

    class Meta:
        model = DeletedContact
        fields = [
            "id",
            "original_id",
            "buyer_name",
            "phone_number",
            "plot",
            "plot_number",
            "snapshot",
            "deleted_at",
            "deleted_by",
        ]
        read_only_fields = fields

    def get_plot_number(self, obj):
        if obj.plot_id:
            return obj.plot.plot_number
        return (obj.snapshot or {}).get("plot_number")

    def get_deleted_by(self, obj):
        u = obj.deleted_by
        return {"id": u.id, "email": u.email} if u else None
