from django.contrib import admin

from .models import Enquiry


@admin.register(Enquiry)
class EnquiryAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "phone_number", "layout", "date")
    list_filter = ("layout",)
    search_fields = ("name", "phone_number")
