# common/validators.py
from django.conf import settings
from django.core.validators import RegexValidator
from rest_framework import serializers

name_validator = RegexValidator(
    r"^[A-Za-z\s]+$",
    "Only alphabets and spaces are allowed.",
)

phone_validator = RegexValidator(
    r"^\d{10}$",
    "Phone number should be exactly 10 digits.",
)


def _fail(field, message):
    if field:
        raise serializers.ValidationError({field: message})
    raise serializers.ValidationError(message)


def validate_upload(file_obj, field=None):
    """
    JPEG / PNG / PDF only, capped at UPLOAD_MAX_BYTES.
    """
    content_type = getattr(file_obj, "content_type", None)
    if content_type not in settings.UPLOAD_ALLOWED_CONTENT_TYPES:
        _fail(field, "Invalid file type. Only JPEG, PNG and PDF are allowed.")
    if file_obj.size > settings.UPLOAD_MAX_BYTES:
        limit_mb = settings.UPLOAD_MAX_BYTES // (1024 * 1024)
        _fail(field, f"File too large. Maximum size is {limit_mb}MB.")
    return file_obj
