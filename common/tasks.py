# common/tasks.py
import logging
import os
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.core.files.storage import default_storage
from django.core.mail import send_mail
from django.utils import timezone

from accounts.models import PasswordResetToken
from booking.models import BookingDocument
from expenses.models import Expense
from setup.models import LayoutResource

logger = logging.getLogger(__name__)

# sub-folders of MEDIA_ROOT that hold row-owned files
UPLOAD_CATEGORIES = ("documents", "expenses", "resources")


# ---------- 1) Password reset mail ----------

@shared_task
def send_password_reset_email(token_id: int):
    try:
        token = PasswordResetToken.objects.select_related("user").get(pk=token_id)
    except PasswordResetToken.DoesNotExist:
        logger.warning("⚠️ [send_password_reset_email] token %s not found", token_id)
        return False

    user = token.user
    reset_url = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password/{token.token}"
    ttl = settings.PASSWORD_RESET_TTL_MINUTES

    subject = "Password Reset Request"
    message = (
        f"Dear {user.get_full_name() or user.username},\n\n"
        f"You requested to reset your password. Open the link below to proceed:\n\n"
        f"{reset_url}\n\n"
        f"This link will expire in {ttl} minutes and can be used only once.\n"
        f"If you didn't request this, please ignore this email.\n"
    )

    sent = send_mail(
        subject,
        message,
        settings.DEFAULT_FROM_EMAIL,
        [user.email],
        fail_silently=False,
    )
    logger.info("✅ [send_password_reset_email] sent=%s user=%s", sent, user.pk)
    return bool(sent)


# ---------- 2) Orphaned uploads ----------

def _referenced_upload_names():
    names = set()
    names.update(
        BookingDocument.objects.exclude(file="").values_list("file", flat=True)
    )
    names.update(
        Expense.objects.exclude(document="").values_list("document", flat=True)
    )
    names.update(
        LayoutResource.objects.exclude(file="").values_list("file", flat=True)
    )
    return names


@shared_task
def reap_orphaned_uploads(max_age_hours: int | None = None):
    """
    Deletes files under uploads/<category>/ that no row points to and that
    are older than ORPHAN_UPLOAD_MAX_AGE_HOURS. Returns the deleted names.
    """
    if max_age_hours is None:
        max_age_hours = settings.ORPHAN_UPLOAD_MAX_AGE_HOURS
    cutoff = timezone.now() - timedelta(hours=max_age_hours)
    referenced = _referenced_upload_names()

    removed = []
    for category in UPLOAD_CATEGORIES:
        if not default_storage.exists(category):
            continue
        _dirs, files = default_storage.listdir(category)
        for filename in files:
            name = os.path.join(category, filename).replace(os.sep, "/")
            if name in referenced:
                continue
            if default_storage.get_modified_time(name) > cutoff:
                continue
            default_storage.delete(name)
            removed.append(name)

    if removed:
        logger.info("🧹 [reap_orphaned_uploads] removed %d file(s): %s", len(removed), removed)
    return removed
