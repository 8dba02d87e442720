from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("accounts.urls")),
    path("api/", include("setup.urls")),
    path("api/", include("plots.urls")),
    path("api/", include("brokers.urls")),
    path("api/", include("booking.urls")),
    path("api/", include("invoice.urls")),
    path("api/", include("expenses.urls")),
    path("api/", include("enquiry.urls")),
    path("api/dashboard/", include("dashboard.urls")),
]
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
