# invoice/services.py
"""
Payment ledger of an invoice.

Every mutation runs in one transaction holding the invoice row lock,
re-checks that the ledger never exceeds the booking's total cost and bumps
`Invoice.version`. Callers may pass the version they last saw; a mismatch
is a 409.

Payments have stable ids. The index-based helpers (`payment_index`,
`delete_payment_at`) resolve a 0-based position against the current order.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Max, Sum
from django.db.models.functions import TruncMonth
from rest_framework.exceptions import NotFound, ValidationError

from common.exceptions import ConflictError
from common.utils import ordinal
from .models import Invoice, Payment

log = logging.getLogger(__name__)

ZERO = Decimal("0.00")

PAYMENT_FIELDS = ("amount", "payment_date", "payment_type", "narration")


# ---------- helpers ----------

def lock_invoice(invoice_id, version=None):
    try:
        invoice = (
            Invoice.objects
            .select_for_update()
            .select_related("booking")
            .get(pk=invoice_id)
        )
    except Invoice.DoesNotExist:
        raise NotFound("Invoice not found.")

    if version in (None, ""):
        return invoice
    try:
        version = int(version)
    except (TypeError, ValueError):
        raise ValidationError({"version": "Version must be an integer."})
    if version != invoice.version:
        raise ConflictError(
            "Invoice was changed by someone else. Reload it and try again."
        )
    return invoice


def _bump_version(invoice):
    invoice.version += 1
    invoice.save(update_fields=["version", "updated_at"])


def ordered_payments(invoice):
    return list(invoice.payments.order_by("order", "id"))


def total_paid(invoice, exclude_id=None) -> Decimal:
    qs = invoice.payments.all()
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    return qs.aggregate(s=Sum("amount"))["s"] or ZERO


def _check_ceiling(invoice, new_amount, exclude_id=None):
    total_cost = invoice.booking.total_cost
    projected = total_paid(invoice, exclude_id=exclude_id) + Decimal(new_amount)
    if projected > total_cost:
        already = total_paid(invoice, exclude_id=exclude_id)
        log.warning(
            "⚠️ [LEDGER] invoice=%s would reach %s over total %s",
            invoice.pk, projected, total_cost,
        )
        raise ValidationError(
            {
                "amount": (
                    f"Total payments ({projected}) cannot exceed the booking's total cost "
                    f"({total_cost}). Remaining balance is {total_cost - already}."
                )
            }
        )


def _payment_at(invoice, index):
    payments = ordered_payments(invoice)
    try:
        index = int(index)
    except (TypeError, ValueError):
        raise ValidationError({"payment_index": "Payment index must be an integer."})
    if index < 0 or index >= len(payments):
        raise NotFound(f"No payment at index {index}.")
    return payments[index]


def _payment_by_id(invoice, payment_id):
    payment = invoice.payments.filter(pk=payment_id).first()
    if payment is None:
        raise NotFound("Payment not found on this invoice.")
    return payment


def _sync_first_payment(payment):
    # the seeded booking payment mirrors Booking.first_payment / payment_type
    booking = payment.invoice.booking
    booking.first_payment = payment.amount
    booking.payment_type = payment.payment_type
    booking.save(update_fields=["first_payment", "payment_type", "updated_at"])


# ---------- 1) Seeding from the booking ----------

def seed_booking_payment(invoice, user=None):
    """Payment #1 of a fresh invoice = the booking's first payment."""
    booking = invoice.booking
    return Payment.objects.create(
        invoice=invoice,
        order=1,
        amount=booking.first_payment,
        payment_date=booking.booking_date,
        payment_type=booking.payment_type,
        narration=booking.narration,
        is_booking_payment=True,
        created_by=user,
    )


def sync_booking_payment(invoice, user=None):
    """
    After a booking edit: keep the seeded payment equal to first_payment and
    make sure the ledger still fits in the (possibly new) total cost.
    """
    booking = invoice.booking
    payment = invoice.payments.filter(is_booking_payment=True).first()
    if payment is None:
        payment = seed_booking_payment(invoice, user=user)
    else:
        payment.amount = booking.first_payment
        payment.payment_type = booking.payment_type
        payment.save(update_fields=["amount", "payment_type", "updated_at"])

    paid = total_paid(invoice)
    if paid > booking.total_cost:
        raise ValidationError(
            {
                "total_cost": (
                    f"Payments already recorded ({paid}) exceed the new total cost "
                    f"({booking.total_cost})."
                )
            }
        )
    _bump_version(invoice)
    return payment


# ---------- 2) Add / edit ----------

def add_payment(invoice_id, data, user=None, version=None):
    with transaction.atomic():
        invoice = lock_invoice(invoice_id, version)
        _check_ceiling(invoice, data["amount"])

        next_order = (invoice.payments.aggregate(m=Max("order"))["m"] or 0) + 1
        payment = Payment.objects.create(
            invoice=invoice,
            order=next_order,
            created_by=user,
            **{k: data[k] for k in PAYMENT_FIELDS if k in data},
        )
        _bump_version(invoice)

    log.info("💰 [LEDGER] invoice=%s added payment=%s amount=%s", invoice.pk, payment.pk, payment.amount)
    return invoice, payment


def edit_payment(invoice_id, data, payment_id=None, payment_index=None, version=None):
    """Overwrite one payment; every other payment is left as it was."""
    with transaction.atomic():
        invoice = lock_invoice(invoice_id, version)
        if payment_id is not None:
            payment = _payment_by_id(invoice, payment_id)
        else:
            payment = _payment_at(invoice, payment_index)

        if "amount" in data:
            _check_ceiling(invoice, data["amount"], exclude_id=payment.pk)

        changed = []
        for key in PAYMENT_FIELDS:
            if key in data:
                setattr(payment, key, data[key])
                changed.append(key)
        if changed:
            payment.save(update_fields=changed + ["updated_at"])
            if payment.is_booking_payment:
                _sync_first_payment(payment)
        _bump_version(invoice)

    log.info("✏️ [LEDGER] invoice=%s edited payment=%s fields=%s", invoice.pk, payment.pk, changed)
    return invoice, payment


def add_or_edit_payment(invoice_id, data, payment_index=None, payment_id=None, user=None, version=None):
    """
    No index and no id -> append. Otherwise overwrite that payment.
    Returns the invoice.
    """
    if payment_index in ("", None) and payment_id in ("", None):
        invoice, _payment = add_payment(invoice_id, data, user=user, version=version)
    else:
        invoice, _payment = edit_payment(
            invoice_id,
            data,
            payment_id=payment_id if payment_id not in ("", None) else None,
            payment_index=payment_index,
            version=version,
        )
    return invoice


# ---------- 3) Delete ----------

def _delete(invoice, payment):
    if payment.is_booking_payment:
        raise ValidationError(
            {"payment": "The booking payment cannot be deleted. Edit the booking's first payment instead."}
        )
    payment_id = payment.pk
    payment.delete()
    _bump_version(invoice)
    log.info("🗑️ [LEDGER] invoice=%s deleted payment=%s", invoice.pk, payment_id)


def delete_payment(invoice_id, payment_id, version=None):
    with transaction.atomic():
        invoice = lock_invoice(invoice_id, version)
        _delete(invoice, _payment_by_id(invoice, payment_id))
    return invoice


def delete_payment_at(invoice_id, index, version=None):
    """[A, B, C] minus index 1 -> [A, C]; A and C keep their ids."""
    with transaction.atomic():
        invoice = lock_invoice(invoice_id, version)
        _delete(invoice, _payment_at(invoice, index))
    return invoice


# ---------- 4) Read side ----------

def labelled_payments(invoice):
    """[(label, payment)] in ledger order: ("1st", p1), ("2nd", p2), ..."""
    return [(ordinal(i), p) for i, p in enumerate(ordered_payments(invoice), start=1)]


def ledger_summary(invoice):
    total_cost = invoice.booking.total_cost
    paid = total_paid(invoice)
    return {
        "total_cost": total_cost,
        "total_paid": paid,
        "balance": total_cost - paid,
        "payment_count": invoice.payments.count(),
    }


def monthly_revenue(payments=None, year=None):
    """
    [{"month": "2025-03", "total_revenue": Decimal}, ...] sorted by month.
    """
    qs = payments if payments is not None else Payment.objects.all()
    if year:
        try:
            year = int(year)
        except (TypeError, ValueError):
            raise ValidationError({"year": "Year must be a number."})
        qs = qs.filter(payment_date__year=year)
    rows = (
        qs.annotate(month=TruncMonth("payment_date"))
        .values("month")
        .annotate(total_revenue=Sum("amount"))
        .order_by("month")
    )
    return [
        {"month": row["month"].strftime("%Y-%m"), "total_revenue": row["total_revenue"]}
        for row in rows
    ]
