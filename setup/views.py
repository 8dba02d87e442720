import logging

from django.db.models import Count
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsSuperAdmin, IsSuperAdminForUnsafe
from common.utils import discard_files, filter_by_layout
from .models import Layout, LayoutResource
from .serializers import (
    LayoutResourceSerializer,
    LayoutResourceUploadSerializer,
    LayoutSerializer,
)

log = logging.getLogger(__name__)


class LayoutViewSet(viewsets.ModelViewSet):
    """
    /api/layouts/        GET (admins), POST (super admin)
    /api/layouts/<id>/   GET, PUT/PATCH/DELETE (super admin)
    """
    queryset = Layout.objects.all().annotate(plot_count=Count("plots")).order_by("name")
    serializer_class = LayoutSerializer
    permission_classes = [IsAuthenticated, IsSuperAdminForUnsafe]

    def get_queryset(self):
        qs = super().get_queryset()
        if "is_active" in self.request.query_params:
            val = self.request.query_params.get("is_active").lower()
            qs = qs.filter(is_active=(val == "true"))
        return qs


class LayoutResourceViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """
    /api/layout-resources/?layout=<id|code>   GET    -> files of a layout
    /api/layout-resources/upload/             POST   -> multipart: file, layout
    /api/layout-resources/<id>/               DELETE -> row + file on disk
    """
    queryset = LayoutResource.objects.select_related("layout").all()
    serializer_class = LayoutResourceSerializer
    permission_classes = [IsAuthenticated, IsSuperAdmin]

    def get_queryset(self):
        qs = super().get_queryset()
        return filter_by_layout(qs, self.request.query_params.get("layout"))

    @action(
        detail=False,
        methods=["post"],
        url_path="upload",
        parser_classes=[MultiPartParser, FormParser],
    )
    def upload(self, request):
        ser = LayoutResourceUploadSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        upload = ser.validated_data["file"]

        resource = LayoutResource(
            layout=ser.validated_data["layout"],
            original_name=upload.name,
            file_type=upload.content_type,
            file_size=upload.size,
            uploaded_by=request.user,
        )
        resource.file.save(upload.name, upload, save=False)
        try:
            resource.save()
        except Exception:
            discard_files([resource.file.name])
            raise

        log.info("📎 [LAYOUT RESOURCE] %s uploaded to layout=%s", resource.file.name, resource.layout_id)
        out = self.get_serializer(resource)
        return Response(out.data, status=status.HTTP_201_CREATED)

    def perform_destroy(self, instance):
        name = instance.file.name
        instance.delete()
        discard_files([name])
