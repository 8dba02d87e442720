from rest_framework import serializers

from setup.models import Layout
from .models import Enquiry


class EnquirySerializer(serializers.ModelSerializer):
    layout = serializers.PrimaryKeyRelatedField(queryset=Layout.objects.all())
    layout_code = serializers.CharField(source="layout.code", read_only=True)

    class Meta:
        model = Enquiry
        fields = [
            "id",
            "name",
            "phone_number",
            "address",
            "reference",
            "message",
            "layout",
            "layout_code",
            "date",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_name(self, value):
        return value.strip()
