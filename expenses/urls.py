from django.urls import path, include, re_path
from rest_framework.routers import DefaultRouter

from .views import ExpenseDocumentFileView, ExpenseViewSet, OtherViewSet

router = DefaultRouter()
router.register(r"expenses", ExpenseViewSet, basename="expense")
router.register(r"others", OtherViewSet, basename="other")

urlpatterns = [
    re_path(
        r"^expenses/(?P<filename>expense-\d+\.[A-Za-z0-9]+)/?$",
        ExpenseDocumentFileView.as_view(),
        name="expense-document-file",
    ),
    path("", include(router.urls)),
]
