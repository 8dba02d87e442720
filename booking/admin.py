from django.contrib import admin

from .models import Booking, BookingDocument, DeletedContact


class BookingDocumentInline(admin.TabularInline):
    model = BookingDocument
    extra = 0


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "buyer_name", "phone_number", "plot", "broker", "total_cost", "booking_date")
    search_fields = ("buyer_name", "phone_number")
    list_select_related = ("plot", "plot__layout", "broker")
    inlines = [BookingDocumentInline]


@admin.register(DeletedContact)
class DeletedContactAdmin(admin.ModelAdmin):
    list_display = ("id", "original_id", "buyer_name", "phone_number", "plot", "deleted_at", "deleted_by")
    readonly_fields = ("original_id", "buyer_name", "phone_number", "plot", "snapshot", "deleted_at", "deleted_by")
