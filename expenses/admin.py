from django.contrib import admin

from .models import Expense, Other


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "layout", "role", "amount", "tds", "net_amount", "date")
    list_filter = ("layout", "role")
    search_fields = ("name", "description")


@admin.register(Other)
class OtherAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "amount", "tds", "net_amount", "date")
    search_fields = ("name", "description")
