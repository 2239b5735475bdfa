from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("recipient", "event_type", "title", "is_read",
                    "content_type", "object_id", "created_at")
    list_filter = ("event_type", "is_read", "content_type")
    search_fields = ("title", "message", "recipient__username")
    readonly_fields = ("created_at", "updated_at")
