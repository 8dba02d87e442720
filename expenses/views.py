# expenses/views.py
import logging
import mimetypes

from django.core.files.storage import default_storage
from django.db import transaction
from django.http import FileResponse
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsAdminOrSuperAdmin
from common.utils import date_param, discard_files, filter_by_layout
from .models import Expense, Other, expense_document_upload_to
from .serializers import ExpenseDocumentSerializer, ExpenseSerializer, OtherSerializer

log = logging.getLogger(__name__)


def settle_expense_document(expense_id, old_name, new_name):
    """
    Runs after a re-upload commits: drops the replaced file and, when storage
    had to pick an alternate name (same extension as before), moves the new
    file back to the predictable expenses/expense-<id><ext>.
    """
    if old_name and old_name != new_name:
        discard_files([old_name])

    target = expense_document_upload_to(Expense(pk=expense_id), new_name)
    if new_name == target or default_storage.exists(target):
        return

    with default_storage.open(new_name, "rb") as fh:
        settled = default_storage.save(target, fh)
    moved = Expense.objects.filter(pk=expense_id, document=new_name).update(document=settled)
    discard_files([new_name] if moved else [settled])
    log.info("📎 [EXPENSE DOC] expense=%s settled %s -> %s", expense_id, new_name, settled if moved else new_name)


class ExpenseViewSet(viewsets.ModelViewSet):
    """
    /api/expenses/                 GET ?layout=<id|code> ?role= ?from= ?to=, POST
    /api/expenses/<id>/            GET, PUT/PATCH, DELETE
    /api/expenses/<id>/upload/     POST multipart `file` -> expenses/expense-<id><ext>
    /api/expenses/<id>/document/   DELETE -> remove the attached file
    /api/expenses/<filename>       GET -> the attached file (see ExpenseDocumentFileView)
    """
    queryset = Expense.objects.select_related("layout").all()
    serializer_class = ExpenseSerializer
    permission_classes = [IsAuthenticated, IsAdminOrSuperAdmin]
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        qs = super().get_queryset()
        q = self.request.query_params

        qs = filter_by_layout(qs, q.get("layout"))
        if q.get("role"):
            qs = qs.filter(role=q["role"])
        date_from = date_param(q, "from")
        if date_from:
            qs = qs.filter(date__gte=date_from)
        date_to = date_param(q, "to")
        if date_to:
            qs = qs.filter(date__lte=date_to)
        return qs.order_by("-created_at", "-id")

    def perform_destroy(self, instance):
        name = instance.document.name if instance.document else None
        instance.delete()
        transaction.on_commit(lambda: discard_files([name]))

    @action(
        detail=True,
        methods=["post"],
        url_path="upload",
        parser_classes=[MultiPartParser, FormParser],
    )
    def upload(self, request, pk=None):
        expense = self.get_object()
        ser = ExpenseDocumentSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        upload = ser.validated_data["file"]

        # the old file stays on disk until the new name is committed
        old_name = expense.document.name or None
        new_name = None
        try:
            with transaction.atomic():
                expense.document.save(upload.name, upload, save=False)
                new_name = expense.document.name
                expense.save(update_fields=["document", "updated_at"])
                transaction.on_commit(
                    lambda: settle_expense_document(expense.pk, old_name, new_name)
                )
        except Exception:
            if new_name and new_name != old_name:
                discard_files([new_name])
            expense.document.name = old_name
            raise

        expense.refresh_from_db(fields=["document", "updated_at"])
        log.info("📎 [EXPENSE DOC] expense=%s file=%s", expense.pk, new_name)
        return Response(self.get_serializer(expense).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["delete"], url_path="document")
    def delete_document(self, request, pk=None):
        expense = self.get_object()
        if not expense.document:
            raise NotFound("This expense has no document.")

        name = expense.document.name
        expense.document = ""
        expense.save(update_fields=["document", "updated_at"])
        discard_files([name])

        log.info("🗑️ [EXPENSE DOC] expense=%s removed %s", expense.pk, name)
        return Response(self.get_serializer(expense).data, status=status.HTTP_200_OK)


class ExpenseDocumentFileView(APIView):
    """
    GET /api/expenses/expense-<id>.<ext>
    """
    permission_classes = [IsAuthenticated, IsAdminOrSuperAdmin]

    def get(self, request, filename):
        name = f"expenses/{filename}"
        if not Expense.objects.filter(document=name).exists() or not default_storage.exists(name):
            raise NotFound("File not found.")

        content_type, _ = mimetypes.guess_type(filename)
        return FileResponse(
            default_storage.open(name, "rb"),
            content_type=content_type or "application/octet-stream",
            filename=filename,
        )


class OtherViewSet(viewsets.ModelViewSet):
    """
    /api/others/        GET ?from= ?to=, POST
    /api/others/<id>/   GET, PUT/PATCH, DELETE
    """
    queryset = Other.objects.all()
    serializer_class = OtherSerializer
    permission_classes = [IsAuthenticated, IsAdminOrSuperAdmin]

    def get_queryset(self):
        qs = super().get_queryset()
        q = self.request.query_params
        date_from = date_param(q, "from")
        if date_from:
            qs = qs.filter(date__gte=date_from)
        date_to = date_param(q, "to")
        if date_to:
            qs = qs.filter(date__lte=date_to)
        return qs.order_by("-created_at", "-id")
