from django.contrib import admin

from .models import Report, ReportComment, ReportProgressUpdate, ReportUpvote


class ReportProgressUpdateInline(admin.TabularInline):
    model = ReportProgressUpdate
    extra = 0
    can_delete = False
    readonly_fields = ("from_status", "status", "percentage", "description", "actor", "created_at")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "category", "priority", "status",
                    "review_state", "progress", "assigned_staff", "created_at")
    list_filter = ("status", "review_state", "category", "priority")
    search_fields = ("title", "description", "location_address")
    raw_id_fields = ("reporter", "assigned_staff", "assigned_by", "reviewed_by")
    # Lifecycle fields change only through the services.
    readonly_fields = ("status", "progress", "review_state", "completion_cycle",
                       "assigned_at", "completed_at", "reviewed_at", "rejected_at")
    inlines = [ReportProgressUpdateInline]


@admin.register(ReportComment)
class ReportCommentAdmin(admin.ModelAdmin):
    list_display = ("id", "report", "author", "created_at")
    search_fields = ("text", "report__title")
    raw_id_fields = ("report", "author")


@admin.register(ReportUpvote)
class ReportUpvoteAdmin(admin.ModelAdmin):
    list_display = ("id", "report", "user", "created_at")
    raw_id_fields = ("report", "user")
