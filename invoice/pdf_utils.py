# invoice/pdf_utils.py
import logging

from django.utils import timezone

from common.pdf_utils import render_html_to_pdf_bytes
from .services import labelled_payments, ledger_summary

log = logging.getLogger(__name__)


def _base_context(invoice):
    booking = invoice.booking
    return {
        "invoice": invoice,
        "booking": booking,
        "plot": booking.plot,
        "layout": booking.plot.layout,
        "summary": ledger_summary(invoice),
        "generated_at": timezone.localtime(),
    }


def payment_receipt_pdf(invoice, payment):
    """Single payment receipt ("2nd payment of Plot 5")."""
    label = ""
    paid_till_now = 0
    for lbl, p in labelled_payments(invoice):
        paid_till_now += p.amount
        if p.pk == payment.pk:
            label = lbl
            break

    context = _base_context(invoice)
    context.update({"payment": payment, "label": label, "paid_till_now": paid_till_now})

    pdf_bytes = render_html_to_pdf_bytes("invoice/payment_receipt.html", context)
    if not pdf_bytes:
        raise RuntimeError("Failed to render payment receipt PDF.")
    log.info("🧾 [RECEIPT PDF] invoice=%s payment=%s", invoice.pk, payment.pk)
    return pdf_bytes


def invoice_statement_pdf(invoice):
    """Whole ledger of one booking."""
    context = _base_context(invoice)
    context["rows"] = labelled_payments(invoice)

    pdf_bytes = render_html_to_pdf_bytes("invoice/invoice_statement.html", context)
    if not pdf_bytes:
        raise RuntimeError("Failed to render invoice statement PDF.")
    log.info("🧾 [STATEMENT PDF] invoice=%s", invoice.pk)
    return pdf_bytes
