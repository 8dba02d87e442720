import logging
from decimal import Decimal

from django.db.models import Prefetch
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsAdminOrSuperAdmin
from booking.models import Booking
from common.utils import filter_by_layout
from .models import Broker
from .serializers import BrokerBookingSerializer, BrokerSerializer
from .utils import compute_commission

log = logging.getLogger(__name__)


class BrokerViewSet(viewsets.ModelViewSet):
    """
    /api/brokers/                GET (newest first, with linked plots), POST
    /api/brokers/<id>/           GET, PUT/PATCH, DELETE (bookings keep, broker link cleared)
    /api/brokers/<id>/bookings/  GET -> bookings + commission gross / TDS / net
    """
    serializer_class = BrokerSerializer
    permission_classes = [IsAuthenticated, IsAdminOrSuperAdmin]

    def get_queryset(self):
        qs = (
            Broker.objects
            .select_related("layout")
            .prefetch_related(
                Prefetch(
                    "bookings",
                    queryset=Booking.objects.select_related("plot", "plot__layout").order_by("id"),
                )
            )
            .order_by("-created_at", "-id")
        )
        return filter_by_layout(qs, self.request.query_params.get("layout"))

    def perform_create(self, serializer):
        broker = serializer.save()
        log.info("🆕 [BROKER CREATE] id=%s name=%s", broker.id, broker.name)

    def perform_destroy(self, instance):
        broker_id = instance.pk
        linked = instance.bookings.count()
        # Booking.broker is SET_NULL
        instance.delete()
        log.info("🗑️ [BROKER DELETE] id=%s, %s booking(s) unlinked", broker_id, linked)

    @action(detail=True, methods=["get"], url_path="bookings")
    def bookings(self, request, pk=None):
        broker = self.get_object()
        bookings = list(broker.bookings.all())

        totals = {"gross_amount": Decimal("0.00"), "tds_amount": Decimal("0.00"), "net_amount": Decimal("0.00")}
        for b in bookings:
            for key, value in compute_commission(broker, b).items():
                totals[key] += value

        rows = BrokerBookingSerializer(bookings, many=True, context={"broker": broker}).data
        return Response(
            {
                "broker": BrokerSerializer(broker, context={"request": request}).data,
                "bookings": rows,
                "totals": {k: str(v) for k, v in totals.items()},
            }
        )
