# booking/services.py
"""
Booking lifecycle: create (booking + documents + invoice + payment #1 in one
transaction), update, delete into the DeletedContact archive, and restore.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.utils.dateparse import parse_date
from rest_framework.exceptions import ValidationError

from brokers.models import Broker
from common.exceptions import ConflictError
from common.utils import discard_files
from invoice import services as ledger
from invoice.models import Invoice, Payment
from plots.models import Plot
from .models import Booking, BookingDocument, DeletedContact

log = logging.getLogger(__name__)

SNAPSHOT_FIELDS = (
    "buyer_name",
    "phone_number",
    "address",
    "date_of_birth",
    "gender",
    "email",
    "total_cost",
    "rate_per_sq_ft",
    "first_payment",
    "payment_type",
    "narration",
    "booking_date",
)
DECIMAL_FIELDS = ("total_cost", "rate_per_sq_ft", "first_payment")
DATE_FIELDS = ("date_of_birth", "booking_date")


def _lock_free_plot(plot_id, exclude_booking_id=None):
    plot = Plot.objects.select_for_update().filter(pk=plot_id).first()
    if plot is None:
        raise ValidationError({"plot": "Plot not found."})
    taken = Booking.objects.filter(plot_id=plot.pk)
    if exclude_booking_id is not None:
        taken = taken.exclude(pk=exclude_booking_id)
    if taken.exists():
        raise ConflictError(f"Plot {plot.plot_number} is already booked.")
    return plot


def _save_documents(booking, documents, written):
    """
    documents: {doc_type: UploadedFile}. Replaces an existing file of the same
    type; returns the names of replaced files.
    """
    replaced = []
    for doc_type, upload in (documents or {}).items():
        doc = booking.documents.filter(doc_type=doc_type).first()
        if doc is None:
            doc = BookingDocument(booking=booking, doc_type=doc_type)
        elif doc.file:
            replaced.append(doc.file.name)
        doc.original_name = upload.name
        doc.file.save(upload.name, upload, save=False)
        written.append(doc.file.name)
        doc.save()
    return replaced


# ---------- 1) Create ----------

def create_booking(data, documents=None, user=None):
    """
    data: validated BookingSerializer data (plot, optional broker / broker_data).
    Any failure rolls everything back and removes the files written so far.
    """
    data = dict(data)
    broker_data = data.pop("broker_data", None)
    written = []

    try:
        with transaction.atomic():
            data["plot"] = _lock_free_plot(data["plot"].pk)
            if broker_data:
                data["broker"] = Broker.objects.create(**broker_data)
                log.info("🆕 [BOOKING CREATE] inline broker id=%s", data["broker"].pk)

            booking = Booking.objects.create(created_by=user, **data)
            _save_documents(booking, documents, written)

            invoice = Invoice.objects.create(booking=booking)
            ledger.seed_booking_payment(invoice, user=user)
    except Exception:
        discard_files(written)
        raise

    log.info(
        "✅ [BOOKING CREATE] booking=%s plot=%s invoice=%s docs=%s",
        booking.pk, booking.plot_id, invoice.pk, len(written),
    )
    return booking


# ---------- 2) Update ----------

def update_booking(booking, data, documents=None, user=None):
    data = dict(data)
    broker_data = data.pop("broker_data", None)
    written = []

    try:
        with transaction.atomic():
            booking = Booking.objects.select_for_update().get(pk=booking.pk)
            if "plot" in data and data["plot"].pk != booking.plot_id:
                data["plot"] = _lock_free_plot(data["plot"].pk, exclude_booking_id=booking.pk)
            if broker_data:
                data["broker"] = Broker.objects.create(**broker_data)

            for key, value in data.items():
                setattr(booking, key, value)
            booking.save()

            replaced = _save_documents(booking, documents, written)

            invoice = Invoice.objects.select_for_update().filter(booking=booking).first()
            if invoice is not None:
                ledger.sync_booking_payment(invoice, user=user)
    except Exception:
        discard_files(written)
        raise

    transaction.on_commit(lambda: discard_files(replaced))
    log.info("✏️ [BOOKING UPDATE] booking=%s fields=%s docs=%s", booking.pk, sorted(data), len(written))
    return booking


# ---------- 3) Delete -> archive ----------

def build_snapshot(booking):
    snap = {field: getattr(booking, field) for field in SNAPSHOT_FIELDS}
    snap.update(
        {
            "plot_id": booking.plot_id,
            "plot_number": booking.plot.plot_number,
            "layout": booking.plot.layout.code,
            "broker_id": booking.broker_id,
            "broker_name": booking.broker.name if booking.broker_id else None,
            "created_by_id": booking.created_by_id,
            "created_at": booking.created_at,
            "payments": [],
            # names only; the files themselves are removed with the booking
            "documents": [
                {"doc_type": d.doc_type, "original_name": d.original_name}
                for d in booking.documents.all()
            ],
        }
    )
    invoice = Invoice.objects.filter(booking=booking).first()
    if invoice is not None:
        snap["invoice_id"] = invoice.pk
        snap["payments"] = [
            {
                "order": p.order,
                "amount": p.amount,
                "payment_date": p.payment_date,
                "payment_type": p.payment_type,
                "narration": p.narration,
                "is_booking_payment": p.is_booking_payment,
            }
            for p in ledger.ordered_payments(invoice)
        ]
    return snap


def archive_booking(booking, user=None):
    return DeletedContact.objects.create(
        original_id=booking.pk,
        buyer_name=booking.buyer_name,
        phone_number=booking.phone_number,
        plot_id=booking.plot_id,
        snapshot=build_snapshot(booking),
        deleted_by=user,
    )


def delete_booking(booking, user=None):
    """
    Archive + delete invoice (with payments) + delete booking, in one go.
    Document files are removed once the transaction commits.
    """
    with transaction.atomic():
        booking = (
            Booking.objects
            .select_for_update()
            .select_related("plot", "plot__layout", "broker")
            .get(pk=booking.pk)
        )
        archive = archive_booking(booking, user=user)
        file_names = [d.file.name for d in booking.documents.all() if d.file]

        Invoice.objects.filter(booking=booking).delete()
        booking.delete()
        transaction.on_commit(lambda: discard_files(file_names))

    log.info("🗑️ [BOOKING DELETE] booking=%s archived as deleted_contact=%s", archive.original_id, archive.pk)
    return archive


# ---------- 4) Restore ----------

def _from_snapshot(snap):
    values = {}
    for field in SNAPSHOT_FIELDS:
        if field not in snap:
            continue
        value = snap[field]
        if value is not None and field in DECIMAL_FIELDS:
            value = Decimal(str(value))
        elif value and field in DATE_FIELDS:
            value = parse_date(str(value))
        values[field] = value
    if values.get("date_of_birth") is None:
        values.pop("date_of_birth", None)
    for field in ("email", "narration"):
        if values.get(field) is None:
            values[field] = ""
    return values


def restore_deleted_contact(archive, user=None):
    """
    Recreates the booking (new id), its invoice and payments from the archive
    entry, then removes the entry. 409 when the plot is gone or booked again.
    """
    with transaction.atomic():
        archive = DeletedContact.objects.select_for_update().get(pk=archive.pk)
        snap = archive.snapshot or {}

        missing = [f for f in ("total_cost", "rate_per_sq_ft", "first_payment", "gender", "payment_type") if f not in snap]
        if missing:
            raise ValidationError({"snapshot": f"Archive entry has no {', '.join(missing)}; it cannot be restored."})

        if archive.plot_id is None:
            raise ConflictError("The plot of this booking no longer exists.")
        plot = _lock_free_plot(archive.plot_id)

        broker = None
        if snap.get("broker_id"):
            broker = Broker.objects.filter(pk=snap["broker_id"]).first()

        values = _from_snapshot(snap)
        values.setdefault("buyer_name", archive.buyer_name)
        values.setdefault("phone_number", archive.phone_number)
        values.setdefault("address", "")

        booking = Booking.objects.create(plot=plot, broker=broker, created_by=user, **values)
        invoice = Invoice.objects.create(booking=booking)

        payments = snap.get("payments") or []
        if payments:
            Payment.objects.bulk_create(
                [
                    Payment(
                        invoice=invoice,
                        order=p.get("order") or idx,
                        amount=Decimal(str(p["amount"])),
                        payment_date=parse_date(str(p["payment_date"])) if p.get("payment_date") else booking.booking_date,
                        payment_type=p.get("payment_type") or booking.payment_type,
                        narration=p.get("narration") or "",
                        is_booking_payment=bool(p.get("is_booking_payment")),
                        created_by=user,
                    )
                    for idx, p in enumerate(payments, start=1)
                ]
            )
        else:
            ledger.seed_booking_payment(invoice, user=user)

        archive_id = archive.pk
        archive.delete()

    log.info("♻️ [BOOKING RESTORE] deleted_contact=%s -> booking=%s", archive_id, booking.pk)
    return booking
