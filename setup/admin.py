from django.contrib import admin

from .models import Layout, LayoutResource


@admin.register(Layout)
class LayoutAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "is_active")
    search_fields = ("name", "code")


@admin.register(LayoutResource)
class LayoutResourceAdmin(admin.ModelAdmin):
    list_display = ("original_name", "layout", "file_type", "file_size", "created_at")
    list_filter = ("layout",)
