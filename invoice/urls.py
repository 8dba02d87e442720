# invoice/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_nested import routers

from .views import InvoiceViewSet, PaymentViewSet

router = DefaultRouter()
router.register(r"invoices", InvoiceViewSet, basename="invoice")

invoices_router = routers.NestedDefaultRouter(router, r"invoices", lookup="invoice")
invoices_router.register(r"payments", PaymentViewSet, basename="invoice-payment")

urlpatterns = [
    path("", include(router.urls)),
    path("", include(invoices_router.urls)),
]

"""
Available endpoints:

- GET    /api/invoices/                                  - List invoices (?booking= ?plot= ?layout=)
- POST   /api/invoices/                                  - Create invoice for a booking (409 if it has one)
- GET    /api/invoices/{id}/                             - Invoice + ordered payments + summary
- DELETE /api/invoices/{id}/                             - Delete invoice
- POST   /api/invoices/{id}/add-payment/                 - Append / edit (payment_index | payment_id)
- DELETE /api/invoices/{id}/payments/at/{index}/         - Delete by 0-based position
- GET    /api/invoices/{id}/statement/                   - Statement PDF
- GET    /api/invoices/plot/{plot_id}/                   - Invoice by plot
- GET    /api/invoices/monthly-revenue/                  - Collected amount per month

- GET    /api/invoices/{invoice_pk}/payments/            - Payments in ledger order
- POST   /api/invoices/{invoice_pk}/payments/            - Append payment
- PATCH  /api/invoices/{invoice_pk}/payments/{id}/       - Edit payment
- DELETE /api/invoices/{invoice_pk}/payments/{id}/       - Delete payment by id (not position; see payments/at/)
- GET    /api/invoices/{invoice_pk}/payments/{id}/receipt/ - Receipt PDF
"""
