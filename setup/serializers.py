from rest_framework import serializers

from common.utils import build_file_url
from common.validators import validate_upload
from .models import Layout, LayoutResource


class LayoutSerializer(serializers.ModelSerializer):
    plot_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Layout
        fields = [
            "id",
            "name",
            "code",
            "description",
            "is_active",
            "plot_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "code", "created_at", "updated_at"]


class LayoutResourceSerializer(serializers.ModelSerializer):
    layout_code = serializers.CharField(source="layout.code", read_only=True)
    url = serializers.SerializerMethodField()
    upload_date = serializers.DateTimeField(read_only=True)

    class Meta:
        model = LayoutResource
        fields = [
            "id",
            "layout",
            "layout_code",
            "file",
            "url",
            "original_name",
            "file_type",
            "file_size",
            "uploaded_by",
            "upload_date",
        ]
        read_only_fields = [
            "id",
            "file",
            "original_name",
            "file_type",
            "file_size",
            "uploaded_by",
            "upload_date",
        ]

    def get_url(self, obj):
        return build_file_url(self.context.get("request"), obj.file)


class LayoutResourceUploadSerializer(serializers.Serializer):
    layout = serializers.PrimaryKeyRelatedField(queryset=Layout.objects.all())
    file = serializers.FileField()

    def validate_file(self, value):
        return validate_upload(value)
