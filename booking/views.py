# booking/views.py
import logging
import re

from django.db.models import Q
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsAdminOrSuperAdmin, IsSuperAdmin
from common.utils import filter_by_layout, int_param
from common.validators import validate_upload
from .models import Booking, DeletedContact, DocumentType
from .serializers import (
    BookingSerializer,
    BookingWriteSerializer,
    DeletedContactSerializer,
)
from .services import create_booking, delete_booking, restore_deleted_contact, update_booking

log = logging.getLogger(__name__)

BROKER_KEY = re.compile(r"^broker_data\[(\w+)\]$")
DOCUMENT_KEY = re.compile(r"^documents\[(\w+)\]$")


def split_booking_payload(request):
    """
    FE FormData -> (data, documents)

      buyer_name=...            -> data["buyer_name"]
      broker_data[name]=...     -> data["broker_data"]["name"]
      aadharCardFront=<file>    -> documents["aadharCardFront"]
      documents[panCard]=<file> -> documents["panCard"]

    JSON bodies pass through (broker_data may already be a dict).
    """
    data = {}
    broker = {}
    documents = {}

    for key in request.data.keys():
        if key in request.FILES:
            continue
        value = request.data.get(key)
        m = BROKER_KEY.match(key)
        if m:
            broker[m.group(1)] = value
        else:
            data[key] = value

    for key, file_obj in request.FILES.items():
        m = DOCUMENT_KEY.match(key)
        doc_type = m.group(1) if m else key
        if doc_type in DocumentType.values:
            documents[doc_type] = file_obj
        else:
            log.debug("Ignoring extra FE file field %s (name=%s)", key, getattr(file_obj, "name", None))

    if broker:
        data["broker_data"] = broker
    for key in ("broker", "date_of_birth", "email"):
        # empty form inputs mean "not given"
        if data.get(key) == "":
            data.pop(key)
    return data, documents


def validate_documents(documents):
    for doc_type, file_obj in documents.items():
        validate_upload(file_obj, field=doc_type)
    return documents


class BookingViewSet(viewsets.ModelViewSet):
    """
    /api/bookings/
      GET    -> list (newest first)  ?layout=<id|code> ?broker= ?plot= ?search=
      POST   -> booking + documents + invoice + payment #1 (one transaction)
    /api/bookings/<id>/
      GET    -> detail (plot, broker, documents, ledger summary)
      PUT/PATCH -> update; rate change re-derives total, ledger kept in sync
      DELETE -> archive into deleted contacts, drop invoice, drop booking
    """

    queryset = (
        Booking.objects
        .select_related("plot", "plot__layout", "broker", "created_by", "invoice")
        .prefetch_related("documents")
        .all()
    )
    serializer_class = BookingSerializer
    permission_classes = [IsAuthenticated, IsAdminOrSuperAdmin]
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    # -------------------------------------------------
    # FILTERS FOR LIST ENDPOINT
    # -------------------------------------------------
    def get_queryset(self):
        qs = super().get_queryset()
        q = self.request.query_params

        qs = filter_by_layout(qs, q.get("layout"), lookup="plot__layout")
        broker_id = int_param(q, "broker")
        if broker_id is not None:
            qs = qs.filter(broker_id=broker_id)
        plot_id = int_param(q, "plot")
        if plot_id is not None:
            qs = qs.filter(plot_id=plot_id)
        if q.get("search"):
            s = q["search"].strip()
            qs = qs.filter(Q(buyer_name__icontains=s) | Q(phone_number__icontains=s))
        return qs.order_by("-created_at", "-id")

    def get_serializer_class(self):
        if self.action in ("create", "update", "partial_update"):
            return BookingWriteSerializer
        return BookingSerializer

    def _detail(self, booking, status_code=status.HTTP_200_OK):
        booking = self.get_queryset().get(pk=booking.pk)
        out = BookingSerializer(booking, context=self.get_serializer_context())
        return Response(out.data, status=status_code)

    def create(self, request, *args, **kwargs):
        data, documents = split_booking_payload(request)
        log.debug("📥 [BOOKING CREATE] keys=%s files=%s", sorted(data), sorted(documents))

        ser = self.get_serializer(data=data)
        ser.is_valid(raise_exception=True)
        validate_documents(documents)

        booking = create_booking(ser.validated_data, documents=documents, user=request.user)
        return self._detail(booking, status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        data, documents = split_booking_payload(request)

        ser = self.get_serializer(instance, data=data, partial=partial)
        ser.is_valid(raise_exception=True)
        validate_documents(documents)

        booking = update_booking(instance, ser.validated_data, documents=documents, user=request.user)
        return self._detail(booking)

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        archive = delete_booking(instance, user=request.user)
        return Response(
            {
                "message": "Booking deleted and moved to deleted contacts.",
                "deleted_contact_id": archive.pk,
            },
            status=status.HTTP_200_OK,
        )


class DeletedContactViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    /api/deleted-contacts/                 GET  [SUPER_ADMIN] newest first
    /api/deleted-contacts/<id>/restore/    POST [SUPER_ADMIN] -> recreated booking
    """

    queryset = DeletedContact.objects.select_related("plot", "deleted_by").all()
    serializer_class = DeletedContactSerializer
    permission_classes = [IsAuthenticated, IsSuperAdmin]

    def get_queryset(self):
        qs = super().get_queryset()
        return filter_by_layout(qs, self.request.query_params.get("layout"), lookup="plot__layout")

    @action(detail=True, methods=["post"], url_path="restore")
    def restore(self, request, pk=None):
        archive = self.get_object()
        booking = restore_deleted_contact(archive, user=request.user)
        booking = BookingViewSet.queryset.get(pk=booking.pk)
        out = BookingSerializer(booking, context=self.get_serializer_context())
        return Response(out.data, status=status.HTTP_201_CREATED)
