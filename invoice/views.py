# invoice/views.py
import logging

from django.db import transaction
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsAdminOrSuperAdmin
from common.exceptions import ConflictError
from common.utils import filter_by_layout, int_param
from . import services as ledger
from .models import Invoice, Payment
from .pdf_utils import invoice_statement_pdf, payment_receipt_pdf
from .serializers import (
    InvoiceCreateSerializer,
    InvoiceSerializer,
    PaymentInputSerializer,
    PaymentSerializer,
)

log = logging.getLogger(__name__)


def _pdf_response(pdf_bytes, filename):
    response = HttpResponse(pdf_bytes, content_type="application/pdf")
    response["Content-Disposition"] = f'inline; filename="{filename}"'
    return response


def _version_from(request):
    version = request.data.get("version") if hasattr(request.data, "get") else None
    if version is None:
        version = request.query_params.get("version")
    return version


class InvoiceViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """
    /api/invoices/                          GET  ?booking= ?plot= ?layout=
                                            POST {booking} -> invoice + booking payment (409 if one exists)
    /api/invoices/<id>/                     GET, DELETE
    /api/invoices/<id>/add-payment/         POST -> append, or edit with payment_index / payment_id
    /api/invoices/<id>/payments/at/<index>/ DELETE -> drop the payment at that 0-based position
    /api/invoices/<id>/statement/           GET  -> PDF
    /api/invoices/plot/<plot_id>/           GET  -> invoice of the booking on that plot
    /api/invoices/monthly-revenue/          GET  ?year=
    """

    queryset = (
        Invoice.objects
        .select_related("booking", "booking__plot", "booking__plot__layout")
        .prefetch_related("payments")
        .all()
    )
    serializer_class = InvoiceSerializer
    permission_classes = [IsAuthenticated, IsAdminOrSuperAdmin]

    def get_queryset(self):
        qs = super().get_queryset()
        q = self.request.query_params

        qs = filter_by_layout(qs, q.get("layout"), lookup="booking__plot__layout")
        booking_id = int_param(q, "booking")
        if booking_id is not None:
            qs = qs.filter(booking_id=booking_id)
        plot_id = int_param(q, "plot")
        if plot_id is not None:
            qs = qs.filter(booking__plot_id=plot_id)
        return qs

    def _out(self, invoice, status_code=status.HTTP_200_OK):
        invoice = self.get_queryset().get(pk=invoice.pk)
        return Response(self.get_serializer(invoice).data, status=status_code)

    def create(self, request, *args, **kwargs):
        ser = InvoiceCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        booking = ser.validated_data["booking"]

        with transaction.atomic():
            if Invoice.objects.select_for_update().filter(booking=booking).exists():
                raise ConflictError(f"Booking {booking.pk} already has an invoice.")
            invoice = Invoice.objects.create(booking=booking)
            ledger.seed_booking_payment(invoice, user=request.user)

        log.info("🆕 [INVOICE CREATE] invoice=%s booking=%s", invoice.pk, booking.pk)
        return self._out(invoice, status.HTTP_201_CREATED)

    def perform_destroy(self, instance):
        log.info("🗑️ [INVOICE DELETE] invoice=%s booking=%s", instance.pk, instance.booking_id)
        instance.delete()

    @action(detail=True, methods=["post"], url_path="add-payment")
    def add_payment(self, request, pk=None):
        invoice = self.get_object()
        ser = PaymentInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        payment_index = data.pop("payment_index", None)
        payment_id = data.pop("payment_id", None)
        version = data.pop("version", None)

        invoice = ledger.add_or_edit_payment(
            invoice.pk,
            data,
            payment_index=payment_index,
            payment_id=payment_id,
            user=request.user,
            version=version,
        )
        return self._out(invoice)

    @action(detail=True, methods=["delete"], url_path=r"payments/at/(?P<index>\d+)")
    def delete_payment_at(self, request, pk=None, index=None):
        invoice = self.get_object()
        invoice = ledger.delete_payment_at(invoice.pk, int(index), version=_version_from(request))
        return self._out(invoice)

    @action(detail=True, methods=["get"], url_path="statement")
    def statement(self, request, pk=None):
        invoice = self.get_object()
        pdf = invoice_statement_pdf(invoice)
        return _pdf_response(pdf, f"invoice_{invoice.pk}.pdf")

    @action(detail=False, methods=["get"], url_path=r"plot/(?P<plot_id>\d+)")
    def by_plot(self, request, plot_id=None):
        invoice = self.get_queryset().filter(booking__plot_id=plot_id).first()
        if invoice is None:
            raise NotFound("No invoice for this plot.")
        return Response(self.get_serializer(invoice).data)

    @action(detail=False, methods=["get"], url_path="monthly-revenue")
    def monthly_revenue(self, request):
        rows = ledger.monthly_revenue(year=request.query_params.get("year"))
        return Response([{"month": r["month"], "total_revenue": str(r["total_revenue"])} for r in rows])


class PaymentViewSet(viewsets.ModelViewSet):
    """
    Nested under an invoice, addressed by stable payment id:

    /api/invoices/<invoice_pk>/payments/            GET, POST (append)
    /api/invoices/<invoice_pk>/payments/<id>/       GET, PUT/PATCH (edit), DELETE
    /api/invoices/<invoice_pk>/payments/<id>/receipt/  GET -> PDF

    Writes answer with the whole invoice; send `version` to guard against
    concurrent edits.

    `<id>` here is the payment id, never a position: DELETE payments/3/
    removes the payment whose id is 3. Clients that address payments by
    their 0-based position use `payments/at/<index>/` on InvoiceViewSet.
    """

    serializer_class = PaymentSerializer
    permission_classes = [IsAuthenticated, IsAdminOrSuperAdmin]
    lookup_value_regex = r"\d+"

    def _invoice(self):
        return get_object_or_404(
            Invoice.objects.select_related("booking", "booking__plot", "booking__plot__layout"),
            pk=self.kwargs["invoice_pk"],
        )

    def get_queryset(self):
        return Payment.objects.filter(invoice_id=self.kwargs["invoice_pk"]).order_by("order", "id")

    def get_serializer_context(self):
        ctx = super().get_serializer_context()
        ids = self.get_queryset().values_list("id", flat=True)
        ctx["positions"] = {pid: i for i, pid in enumerate(ids, start=1)}
        return ctx

    def _invoice_out(self, invoice, status_code=status.HTTP_200_OK):
        invoice = InvoiceViewSet.queryset.get(pk=invoice.pk)
        out = InvoiceSerializer(invoice, context={"request": self.request})
        return Response(out.data, status=status_code)

    def create(self, request, *args, **kwargs):
        invoice = self._invoice()
        ser = PaymentInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        version = data.pop("version", None)
        data.pop("payment_index", None)
        data.pop("payment_id", None)

        invoice, _payment = ledger.add_payment(invoice.pk, data, user=request.user, version=version)
        return self._invoice_out(invoice, status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        payment = self.get_object()
        ser = PaymentInputSerializer(data=request.data, partial=partial)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        version = data.pop("version", None)
        data.pop("payment_index", None)
        data.pop("payment_id", None)

        invoice, _payment = ledger.edit_payment(
            payment.invoice_id, data, payment_id=payment.pk, version=version
        )
        return self._invoice_out(invoice)

    def destroy(self, request, *args, **kwargs):
        payment = self.get_object()
        invoice = ledger.delete_payment(payment.invoice_id, payment.pk, version=_version_from(request))
        return self._invoice_out(invoice)

    @action(detail=True, methods=["get"], url_path="receipt")
    def receipt(self, request, invoice_pk=None, pk=None):
        payment = self.get_object()
        invoice = self._invoice()
        pdf = payment_receipt_pdf(invoice, payment)
        return _pdf_response(pdf, f"receipt_{invoice.pk}_{payment.pk}.pdf")
