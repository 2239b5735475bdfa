from django.contrib import admin

from .models import StaffProfile


@admin.register(StaffProfile)
class StaffProfileAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "specialization_category", "is_active",
                    "phone_number", "created_at")
    list_filter = ("is_active", "specialization_category")
    search_fields = ("user__username", "user__first_name", "user__last_name",
                     "specialization_category")
    raw_id_fields = ("user",)
