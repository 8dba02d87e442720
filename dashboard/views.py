# dashboard/views.py

import logging
from decimal import Decimal

from django.db.models import Sum
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsAdminOrSuperAdmin
from booking.models import Booking
from common.utils import date_param, filter_by_layout
from enquiry.models import Enquiry
from expenses.models import Expense
from invoice.models import Payment
from invoice.services import monthly_revenue
from plots.models import Plot
from plots.views import plot_counts

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


# =====================================================
# Helper functions
# =====================================================

def get_date_range(request):
    """
    Query params:
      ?from_date=YYYY-MM-DD&to_date=YYYY-MM-DD

    Either may be missing (open range).
    """
    from_date = date_param(request.query_params, "from_date")
    to_date = date_param(request.query_params, "to_date")

    if from_date and to_date and from_date > to_date:
        from_date, to_date = to_date, from_date
    return from_date, to_date


def apply_date_filter_date(qs, field_name, from_date, to_date):
    if from_date:
        qs = qs.filter(**{f"{field_name}__gte": from_date})
    if to_date:
        qs = qs.filter(**{f"{field_name}__lte": to_date})
    return qs


def _sum(qs, field):
    return qs.aggregate(s=Sum(field))["s"] or ZERO


def build_stats(layout=None, from_date=None, to_date=None):
    plots = filter_by_layout(Plot.objects.all(), layout)

    bookings = filter_by_layout(Booking.objects.all(), layout, lookup="plot__layout")
    bookings = apply_date_filter_date(bookings, "booking_date", from_date, to_date)

    payments = filter_by_layout(Payment.objects.all(), layout, lookup="invoice__booking__plot__layout")
    payments = apply_date_filter_date(payments, "payment_date", from_date, to_date)

    expenses = filter_by_layout(Expense.objects.all(), layout)
    expenses = apply_date_filter_date(expenses, "date", from_date, to_date)

    enquiries = filter_by_layout(Enquiry.objects.all(), layout)
    enquiries = apply_date_filter_date(enquiries, "date", from_date, to_date)

    booked_value = _sum(bookings, "total_cost")
    collected = _sum(payments.filter(invoice__booking__in=bookings), "amount")

    return {
        "plots": plot_counts(plots),
        "bookings": {
            "count": bookings.count(),
            "booked_value": str(booked_value),
            "collected": str(collected),
            "outstanding": str(booked_value - collected),
        },
        "expenses": {
            "count": expenses.count(),
            "amount": str(_sum(expenses, "amount")),
            "net_amount": str(_sum(expenses, "net_amount")),
        },
        "enquiries": {"count": enquiries.count()},
    }


# =====================================================
# Views
# =====================================================

class DashboardStatsView(APIView):
    """
    GET /api/dashboard/stats/?layout=<id|code>&from_date=&to_date=
    """
    permission_classes = [IsAuthenticated, IsAdminOrSuperAdmin]

    def get(self, request):
        from_date, to_date = get_date_range(request)
        layout = request.query_params.get("layout")
        data = build_stats(layout, from_date, to_date)
        logger.debug("📊 [DASHBOARD] stats layout=%s range=%s..%s", layout, from_date, to_date)
        return Response(data)


class MonthlyRevenueView(APIView):
    """
    GET /api/dashboard/revenue/monthly/?year=2025&layout=<id|code>
      -> [{"month": "2025-01", "total_revenue": "..."}]
    """
    permission_classes = [IsAuthenticated, IsAdminOrSuperAdmin]

    def get(self, request):
        payments = filter_by_layout(
            Payment.objects.all(),
            request.query_params.get("layout"),
            lookup="invoice__booking__plot__layout",
        )
        rows = monthly_revenue(payments, year=request.query_params.get("year"))
        return Response(
            [{"month": r["month"], "total_revenue": str(r["total_revenue"])} for r in rows]
        )
