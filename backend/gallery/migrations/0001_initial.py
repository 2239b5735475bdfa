import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("reports", "0001_initial"),
        ("staff", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="GallerySubmission",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("before_image_ref", models.CharField(max_length=500, verbose_name="Before Image")),
                ("after_image_ref", models.CharField(max_length=500, verbose_name="After Image")),
                ("caption", models.CharField(blank=True, default="", max_length=255, verbose_name="Caption")),
                ("status", models.CharField(choices=[("pending", "Pending"), ("approved", "Approved"), ("rejected", "Rejected")], db_index=True, default="pending", max_length=20, verbose_name="Status")),
                ("featured", models.BooleanField(default=False, verbose_name="Featured")),
                ("admin_notes", models.TextField(blank=True, default="", verbose_name="Admin Notes")),
                ("rejection_reason", models.TextField(blank=True, default="", verbose_name="Rejection Reason")),
                ("approved_at", models.DateTimeField(blank=True, null=True, verbose_name="Approved At")),
                ("rejected_at", models.DateTimeField(blank=True, null=True, verbose_name="Rejected At")),
                ("report", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="gallery_submissions", to="reports.report", verbose_name="Report")),
                ("reviewed_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="gallery_reviews", to=settings.AUTH_USER_MODEL, verbose_name="Reviewed By")),
                ("uploaded_by", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="gallery_submissions", to="staff.staffprofile", verbose_name="Uploaded By")),
            ],
            options={
                "verbose_name": "Gallery Submission",
                "verbose_name_plural": "Gallery Submissions",
                "ordering": ["-created_at", "-id"],
                "indexes": [models.Index(fields=["status", "featured"], name="gallery_status_featured_idx")],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("featured", False), ("status", "approved"), _connector="OR"), name="gallery_featured_requires_approved"),
                ],
            },
        ),
    ]
