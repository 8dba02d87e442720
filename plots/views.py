import logging

from django.db.models import Count, Q
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsAdminOrSuperAdmin, IsSuperAdmin
from common.exceptions import ConflictError
from common.utils import filter_by_layout
from .models import Plot
from .serializers import PlotSerializer

log = logging.getLogger(__name__)


def plot_counts(qs):
    agg = qs.aggregate(
        total=Count("id"),
        sold=Count("id", filter=Q(booking__isnull=False)),
    )
    total = agg["total"] or 0
    sold = agg["sold"] or 0
    return {"total_plots": total, "sold_plots": sold, "available_plots": total - sold}


class PlotViewSet(viewsets.ModelViewSet):
    """
    /api/plots/                  GET  -> all plots (+ status, buyer, contact)
                                 POST -> create [SUPER_ADMIN]
    /api/plots/<id>/             GET, PUT/PATCH [admins], DELETE [SUPER_ADMIN]
    /api/plots/available-plots/  GET  -> plots with no booking
    /api/plots/stats/            GET  -> totals / sold / available

    Filters: ?layout=<id|code>  ?status=available|sold  ?plot_number=
    """
    queryset = Plot.objects.select_related("layout", "booking").all()
    serializer_class = PlotSerializer
    permission_classes = [IsAuthenticated, IsAdminOrSuperAdmin]

    def get_permissions(self):
        if self.action in ("create", "destroy"):
            return [IsAuthenticated(), IsSuperAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        qs = super().get_queryset()
        q = self.request.query_params

        qs = filter_by_layout(qs, q.get("layout"))
        if q.get("status"):
            qs = qs.with_status(q["status"].lower())
        if q.get("plot_number"):
            qs = qs.filter(plot_number=q["plot_number"])
        return qs

    def perform_create(self, serializer):
        plot = serializer.save()
        log.info("🆕 [PLOT CREATE] layout=%s plot=%s id=%s", plot.layout_id, plot.plot_number, plot.id)

    def perform_destroy(self, instance):
        if instance.current_booking is not None:
            raise ConflictError(
                f"Plot {instance.plot_number} is booked and cannot be deleted."
            )
        log.info("🗑️ [PLOT DELETE] id=%s", instance.id)
        instance.delete()

    @action(detail=False, methods=["get"], url_path="available-plots")
    def available_plots(self, request):
        qs = self.get_queryset().available()
        return Response(self.get_serializer(qs, many=True).data)

    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        qs = filter_by_layout(Plot.objects.all(), request.query_params.get("layout"))
        return Response(plot_counts(qs))
