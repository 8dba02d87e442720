import logging

from django.db.models import Q
from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from accounts.permissions import IsAdminOrSuperAdmin
from common.utils import filter_by_layout
from .models import Enquiry
from .serializers import EnquirySerializer

log = logging.getLogger(__name__)


class EnquiryViewSet(viewsets.ModelViewSet):
    """
    /api/enquiries/        GET ?layout=<id|code> ?search=, POST
    /api/enquiries/<id>/   GET, PUT/PATCH, DELETE
    """
    queryset = Enquiry.objects.select_related("layout").all()
    serializer_class = EnquirySerializer
    permission_classes = [IsAuthenticated, IsAdminOrSuperAdmin]

    def get_queryset(self):
        qs = super().get_queryset()
        q = self.request.query_params

        qs = filter_by_layout(qs, q.get("layout"))
        if q.get("search"):
            s = q["search"].strip()
            qs = qs.filter(Q(name__icontains=s) | Q(phone_number__icontains=s))
        return qs.order_by("-created_at", "-id")

    def perform_create(self, serializer):
        enquiry = serializer.save()
        log.info("🆕 [ENQUIRY CREATE] id=%s layout=%s", enquiry.id, enquiry.layout_id)
