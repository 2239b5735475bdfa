from django.contrib import admin

from .models import ReportFeedback


@admin.register(ReportFeedback)
class ReportFeedbackAdmin(admin.ModelAdmin):
    list_display = ("id", "report", "author", "rating", "sentiment", "is_public", "created_at")
    list_filter = ("rating", "sentiment", "is_public")
    search_fields = ("comment", "report__title")
    raw_id_fields = ("report", "author")
    readonly_fields = ("sentiment",)
