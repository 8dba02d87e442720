from django.contrib import admin

from .models import Broker


@admin.register(Broker)
class BrokerAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "phone_number", "commission_rate", "tds_percentage", "layout", "created_at")
    search_fields = ("name", "phone_number")
    list_filter = ("layout",)
