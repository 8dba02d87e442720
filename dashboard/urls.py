# dashboard/urls.py

from django.urls import path
from .views import DashboardStatsView, MonthlyRevenueView

urlpatterns = [
    path("stats/", DashboardStatsView.as_view(), name="dashboard-stats"),
    path("revenue/monthly/", MonthlyRevenueView.as_view(), name="dashboard-monthly-revenue"),
]
