from rest_framework import serializers

from common.fields import CommaDecimalField
from setup.models import Layout
from .models import Broker, PERCENT_VALIDATORS
from .utils import compute_commission


class BrokerSerializer(serializers.ModelSerializer):
    commission_rate = CommaDecimalField(
        max_digits=7, decimal_places=2, required=False, validators=PERCENT_VALIDATORS
    )
    layout = serializers.PrimaryKeyRelatedField(
        queryset=Layout.objects.all(), required=False, allow_null=True
    )
    plots = serializers.SerializerMethodField()

    class Meta:
        model = Broker
        fields = [
            "id",
            "name",
            "phone_number",
            "address",
            "commission_rate",
            "tds_percentage",
            "reference_date",
            "layout",
            "plots",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "plots", "created_at", "updated_at"]

    def validate_name(self, value):
        return value.strip()

    def get_plots(self, obj):
        # plots this broker brought in
        return [
            {
                "id": b.plot_id,
                "plot_number": b.plot.plot_number,
                "layout": b.plot.layout.code,
                "booking_id": b.id,
            }
            for b in obj.bookings.all()
        ]


class BrokerBookingSerializer(serializers.Serializer):
    """Read-only row for /api/brokers/<id>/bookings/."""

    booking_id = serializers.IntegerField(source="id")
    buyer_name = serializers.CharField()
    phone_number = serializers.CharField()
    plot_id = serializers.IntegerField()
    plot_number = serializers.IntegerField(source="plot.plot_number")
    layout = serializers.CharField(source="plot.layout.code")
    area_sq_ft = serializers.DecimalField(source="plot.area_sq_ft", max_digits=14, decimal_places=5)
    total_cost = serializers.DecimalField(max_digits=14, decimal_places=2)
    booking_date = serializers.DateField()
    commission = serializers.SerializerMethodField()

    def get_commission(self, obj):
        broker = self.context["broker"]
        return {k: str(v) for k, v in compute_commission(broker, obj).items()}
