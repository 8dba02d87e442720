from rest_framework import serializers

from common.exceptions import ConflictError
from setup.models import Layout
from .models import Plot


class PlotSerializer(serializers.ModelSerializer):
    layout = serializers.PrimaryKeyRelatedField(queryset=Layout.objects.all())
    layout_code = serializers.CharField(source="layout.code", read_only=True)
    status = serializers.CharField(read_only=True)
    booking_id = serializers.SerializerMethodField()
    buyer = serializers.SerializerMethodField()
    contact = serializers.SerializerMethodField()

    class Meta:
        model = Plot
        fields = [
            "id",
            "layout",
            "layout_code",
            "plot_number",
            "area_sq_mt",
            "area_sq_ft",
            "rate_per_sq_ft",
            "status",
            "booking_id",
            "buyer",
            "contact",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]
        # duplicate (layout, plot_number) is a 409, checked in validate()
        validators = []

    def get_booking_id(self, obj):
        booking = obj.current_booking
        return booking.id if booking else None

    def get_buyer(self, obj):
        booking = obj.current_booking
        return booking.buyer_name if booking else None

    def get_contact(self, obj):
        booking = obj.current_booking
        return booking.phone_number if booking else None

    def validate(self, attrs):
        layout = attrs.get("layout", getattr(self.instance, "layout", None))
        plot_number = attrs.get("plot_number", getattr(self.instance, "plot_number", None))

        dupes = Plot.objects.filter(layout=layout, plot_number=plot_number)
        if self.instance is not None:
            dupes = dupes.exclude(pk=self.instance.pk)
        if dupes.exists():
            raise ConflictError(
                f"Plot {plot_number} already exists in layout {layout.code}."
            )
        return attrs


class PlotBriefSerializer(serializers.ModelSerializer):
    layout_code = serializers.CharField(source="layout.code", read_only=True)

    class Meta:
        model = Plot
        fields = ["id", "plot_number", "layout", "layout_code", "area_sq_ft", "rate_per_sq_ft"]
