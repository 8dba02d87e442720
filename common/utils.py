# common/utils.py
import logging
import os
import re
import time

from django.core.files.storage import default_storage
from django.utils.dateparse import parse_date
from rest_framework.exceptions import ValidationError

log = logging.getLogger(__name__)


def clean_filename(name: str) -> str:
    """
    'My Plan (v2).pdf' -> 'My-Plan-v2.pdf'
    """
    base = os.path.basename(name or "")
    base = re.sub(r"\s+", "-", base.strip())
    return re.sub(r"[^A-Za-z0-9._-]", "", base) or "file"


def timestamped_upload_name(category: str, filename: str) -> str:
    """uploads/<category>/<epoch-ms>-<clean name>"""
    return f"{category}/{int(time.time() * 1000)}-{clean_filename(filename)}"


def file_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


def discard_files(names, storage=None):
    """
    Best-effort removal of files already written to storage
    (used when the DB write they belong to is rolled back).
    """
    storage = storage or default_storage
    for name in names:
        if not name:
            continue
        try:
            if storage.exists(name):
                storage.delete(name)
                log.info("🧹 Removed upload %s", name)
        except OSError:
            log.exception("❌ Could not remove upload %s", name)


def build_file_url(request, file_field):
    if not file_field:
        return None
    try:
        url = file_field.url
    except ValueError:
        return None
    if request is not None:
        return request.build_absolute_uri(url)
    return url


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def filter_by_layout(qs, value, lookup="layout"):
    """
    ?layout=3 (id) or ?layout=layout1 (code, case-insensitive)
    """
    if not value:
        return qs
    value = str(value).strip()
    if value.isdigit():
        return qs.filter(**{f"{lookup}_id": int(value)})
    return qs.filter(**{f"{lookup}__code__iexact": value})


def int_param(params, key):
    """
    ?booking=12 -> 12; missing/blank -> None; anything else is a 400 on `key`.
    """
    value = params.get(key)
    if value is None or str(value).strip() == "":
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError({key: f"{key} must be an integer."})


def date_param(params, key):
    """
    ?from=2025-01-31 -> date; missing/blank -> None; bad dates are a 400 on `key`.
    """
    value = params.get(key)
    if value is None or str(value).strip() == "":
        return None
    try:
        parsed = parse_date(str(value).strip())
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError({key: f"{key} must be a date (YYYY-MM-DD)."})
    return parsed
