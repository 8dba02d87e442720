# common/fields.py
from rest_framework import serializers


class CommaDecimalField(serializers.DecimalField):
    """Accepts "1,00,000.50" style amounts from the UI."""

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = data.replace(",", "").strip()
        return super().to_internal_value(data)
