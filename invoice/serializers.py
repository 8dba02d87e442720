from decimal import Decimal

from rest_framework import serializers

from booking.models import Booking, PaymentType
from common.fields import CommaDecimalField
from common.utils import ordinal
from .models import Invoice, Payment
from .services import ledger_summary


class PaymentSerializer(serializers.ModelSerializer):
    label = serializers.SerializerMethodField()

    class Meta:
        model = Payment
        fields = [
            "id",
            "order",
            "label",
            "amount",
            "payment_date",
            "payment_type",
            "narration",
            "is_booking_payment",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_label(self, obj):
        positions = self.context.get("positions") or {}
        pos = positions.get(obj.pk)
        return ordinal(pos) if pos else None


class PaymentInputSerializer(serializers.Serializer):
    """
    Body of add-payment / payment edits.
      amount, payment_date?, payment_type, narration?
      payment_index? (0-based) | payment_id?   -> edit instead of append
      version?                                  -> optimistic lock
    """
    amount = CommaDecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0.01"))
    payment_date = serializers.DateField(required=False)
    payment_type = serializers.ChoiceField(choices=PaymentType.choices)
    narration = serializers.CharField(required=False, allow_blank=True, default="")

    payment_index = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    payment_id = serializers.IntegerField(required=False, allow_null=True)
    version = serializers.IntegerField(required=False, allow_null=True)

    def to_internal_value(self, data):
        # camelCase from the older FE
        if hasattr(data, "copy"):
            data = data.copy()
        if "paymentIndex" in data and "payment_index" not in data:
            data["payment_index"] = data.get("paymentIndex")
        return super().to_internal_value(data)


class InvoiceSerializer(serializers.ModelSerializer):
    buyer_name = serializers.CharField(source="booking.buyer_name", read_only=True)
    phone_number = serializers.CharField(source="booking.phone_number", read_only=True)
    plot = serializers.IntegerField(source="booking.plot_id", read_only=True)
    plot_number = serializers.IntegerField(source="booking.plot.plot_number", read_only=True)
    layout = serializers.CharField(source="booking.plot.layout.code", read_only=True)
    summary = serializers.SerializerMethodField()
    payments = serializers.SerializerMethodField()

    class Meta:
        model = Invoice
        fields = [
            "id",
            "booking",
            "version",
            "buyer_name",
            "phone_number",
            "plot",
            "plot_number",
            "layout",
            "summary",
            "payments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_summary(self, obj):
        return {k: str(v) if isinstance(v, Decimal) else v for k, v in ledger_summary(obj).items()}

    def get_payments(self, obj):
        payments = list(obj.payments.order_by("order", "id"))
        positions = {p.pk: i for i, p in enumerate(payments, start=1)}
        ctx = {**self.context, "positions": positions}
        return PaymentSerializer(payments, many=True, context=ctx).data


class InvoiceCreateSerializer(serializers.Serializer):
    booking = serializers.PrimaryKeyRelatedField(queryset=Booking.objects.all())
