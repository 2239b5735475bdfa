import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("reports", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ReportComment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("text", models.TextField(max_length=500, verbose_name="Text")),
                ("author", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="report_comments", to=settings.AUTH_USER_MODEL, verbose_name="Author")),
                ("report", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="comments", to="reports.report", verbose_name="Report")),
            ],
            options={
                "verbose_name": "Report Comment",
                "verbose_name_plural": "Report Comments",
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="ReportUpvote",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("report", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="upvotes", to="reports.report", verbose_name="Report")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="report_upvotes", to=settings.AUTH_USER_MODEL, verbose_name="User")),
            ],
            options={
                "verbose_name": "Report Upvote",
                "verbose_name_plural": "Report Upvotes",
                "constraints": [
                    models.UniqueConstraint(fields=("report", "user"), name="report_upvote_once_per_user"),
                ],
            },
        ),
    ]
