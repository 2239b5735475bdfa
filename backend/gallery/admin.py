from django.contrib import admin

from .models import GallerySubmission


@admin.register(GallerySubmission)
class GallerySubmissionAdmin(admin.ModelAdmin):
    list_display = ("id", "report", "uploaded_by", "status", "featured", "created_at")
    list_filter = ("status", "featured")
    search_fields = ("caption", "report__title")
    raw_id_fields = ("report", "uploaded_by", "reviewed_by")
    readonly_fields = ("status", "approved_at", "rejected_at")
