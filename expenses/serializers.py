from rest_framework import serializers

from common.fields import CommaDecimalField
from common.utils import build_file_url
from common.validators import validate_upload
from setup.models import Layout
from .models import Expense, Other

LEDGER_FIELDS = [
    "id",
    "description",
    "name",
    "amount",
    "tds",
    "net_amount",
    "date",
    "created_at",
    "updated_at",
]


class OtherSerializer(serializers.ModelSerializer):
    amount = CommaDecimalField(max_digits=14, decimal_places=2, min_value=0)

    class Meta:
        model = Other
        fields = LEDGER_FIELDS
        read_only_fields = ["id", "net_amount", "created_at", "updated_at"]


class ExpenseSerializer(serializers.ModelSerializer):
    amount = CommaDecimalField(max_digits=14, decimal_places=2, min_value=0)
    layout = serializers.PrimaryKeyRelatedField(queryset=Layout.objects.all())
    layout_code = serializers.CharField(source="layout.code", read_only=True)
    document_url = serializers.SerializerMethodField()
    document_name = serializers.SerializerMethodField()

    class Meta:
        model = Expense
        fields = LEDGER_FIELDS + [
            "layout",
            "layout_code",
            "occupation",
            "role",
            "document_name",
            "document_url",
        ]
        read_only_fields = ["id", "net_amount", "created_at", "updated_at"]

    def get_document_name(self, obj):
        return obj.document.name.rsplit("/", 1)[-1] if obj.document else None

    def get_document_url(self, obj):
        return build_file_url(self.context.get("request"), obj.document)


class ExpenseDocumentSerializer(serializers.Serializer):
    file = serializers.FileField()

    def validate_file(self, value):
        return validate_upload(value)
