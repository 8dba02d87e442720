from django.contrib import admin

from .models import Plot


@admin.register(Plot)
class PlotAdmin(admin.ModelAdmin):
    list_display = ("id", "layout", "plot_number", "area_sq_ft", "rate_per_sq_ft", "status")
    list_filter = ("layout",)
    search_fields = ("plot_number",)
    list_select_related = ("layout", "booking")
