from django.contrib import admin

from .models import Invoice, Payment


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    fields = ("order", "amount", "payment_date", "payment_type", "narration", "is_booking_payment")


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ("id", "booking", "version", "created_at")
    list_select_related = ("booking",)
    inlines = [PaymentInline]
