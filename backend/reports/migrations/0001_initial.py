import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("staff", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Report",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("title", models.CharField(max_length=100, verbose_name="Title")),
                ("description", models.TextField(max_length=1000, verbose_name="Description")),
                ("category", models.CharField(choices=[("pothole", "Pothole"), ("drainage", "Drainage"), ("lighting", "Street Lighting"), ("garbage", "Garbage"), ("signage", "Signage"), ("other", "Other")], db_index=True, max_length=20, verbose_name="Category")),
                ("priority", models.CharField(choices=[("low", "Low"), ("medium", "Medium"), ("high", "High")], db_index=True, default="medium", max_length=10, verbose_name="Priority")),
                ("location_address", models.CharField(max_length=255, verbose_name="Address")),
                ("location_latitude", models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True, verbose_name="Latitude")),
                ("location_longitude", models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True, verbose_name="Longitude")),
                ("location_landmark", models.CharField(blank=True, default="", max_length=255, verbose_name="Landmark")),
                ("status", models.CharField(choices=[("pending", "Pending"), ("assigned", "Assigned"), ("in_progress", "In Progress"), ("completed", "Completed"), ("rejected", "Rejected")], db_index=True, default="pending", max_length=20, verbose_name="Status")),
                ("progress", models.PositiveSmallIntegerField(default=0, verbose_name="Progress (%)")),
                ("review_state", models.CharField(choices=[("not_applicable", "Not Applicable"), ("awaiting_review", "Awaiting Review"), ("approved", "Approved"), ("rejected", "Rejected")], db_index=True, default="not_applicable", max_length=20, verbose_name="Review State")),
                ("completion_cycle", models.PositiveIntegerField(default=0, help_text="How many times this report has entered 'completed'.", verbose_name="Completion Cycle")),
                ("due_date", models.DateField(blank=True, null=True, verbose_name="Due Date")),
                ("assignment_notes", models.TextField(blank=True, default="", verbose_name="Assignment Notes")),
                ("completion_notes", models.TextField(blank=True, default="", verbose_name="Completion Notes")),
                ("admin_notes", models.TextField(blank=True, default="", verbose_name="Admin Notes")),
                ("rejection_reason", models.TextField(blank=True, default="", verbose_name="Rejection Reason")),
                ("assigned_at", models.DateTimeField(blank=True, null=True, verbose_name="Assigned At")),
                ("completed_at", models.DateTimeField(blank=True, null=True, verbose_name="Completed At")),
                ("reviewed_at", models.DateTimeField(blank=True, null=True, verbose_name="Reviewed At")),
                ("rejected_at", models.DateTimeField(blank=True, null=True, verbose_name="Rejected At")),
                ("assigned_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="reports_assigned", to=settings.AUTH_USER_MODEL, verbose_name="Assigned By")),
                ("assigned_staff", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="assigned_reports", to="staff.staffprofile", verbose_name="Assigned Staff")),
                ("reporter", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="reports", to=settings.AUTH_USER_MODEL, verbose_name="Reporter")),
                ("reviewed_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="reports_reviewed", to=settings.AUTH_USER_MODEL, verbose_name="Reviewed By")),
            ],
            options={
                "verbose_name": "Report",
                "verbose_name_plural": "Reports",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["status", "review_state"], name="report_status_review_idx"),
                    models.Index(fields=["assigned_staff", "status"], name="report_staff_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("progress__gte", 0), ("progress__lte", 100)), name="report_progress_within_bounds"),
                    models.CheckConstraint(condition=models.Q(models.Q(("review_state__in", ["awaiting_review", "approved"]), _negated=True), ("status", "completed"), _connector="OR"), name="report_review_state_requires_completed"),
                    models.CheckConstraint(condition=models.Q(models.Q(("location_latitude__isnull", True), ("location_longitude__isnull", True)), models.Q(("location_latitude__isnull", False), ("location_longitude__isnull", False)), _connector="OR"), name="report_coordinates_both_or_neither"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReportProgressUpdate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("from_status", models.CharField(choices=[("pending", "Pending"), ("assigned", "Assigned"), ("in_progress", "In Progress"), ("completed", "Completed"), ("rejected", "Rejected")], max_length=20, verbose_name="Previous Status")),
                ("status", models.CharField(choices=[("pending", "Pending"), ("assigned", "Assigned"), ("in_progress", "In Progress"), ("completed", "Completed"), ("rejected", "Rejected")], max_length=20, verbose_name="New Status")),
                ("percentage", models.PositiveSmallIntegerField(verbose_name="Progress (%)")),
                ("description", models.TextField(blank=True, default="", verbose_name="Description")),
                ("actor", models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="report_progress_updates", to=settings.AUTH_USER_MODEL, verbose_name="Actor")),
                ("report", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="progress_updates", to="reports.report", verbose_name="Report")),
            ],
            options={
                "verbose_name": "Report Progress Update",
                "verbose_name_plural": "Report Progress Updates",
                "ordering": ["created_at", "id"],
            },
        ),
    ]
