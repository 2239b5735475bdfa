import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def _bounded(field, nullable=False):
    within = models.Q((f"{field}__gte", 1), (f"{field}__lte", 5))
    if nullable:
        return models.Q((f"{field}__isnull", True), within, _connector="OR")
    return within


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("reports", "0002_comments_upvotes"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ReportFeedback",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("rating", models.PositiveSmallIntegerField(db_index=True, verbose_name="Rating")),
                ("quality_of_work", models.PositiveSmallIntegerField(blank=True, null=True, verbose_name="Quality of Work")),
                ("timeliness", models.PositiveSmallIntegerField(blank=True, null=True, verbose_name="Timeliness")),
                ("communication", models.PositiveSmallIntegerField(blank=True, null=True, verbose_name="Communication")),
                ("professionalism", models.PositiveSmallIntegerField(blank=True, null=True, verbose_name="Professionalism")),
                ("comment", models.TextField(blank=True, default="", max_length=500, verbose_name="Comment")),
                ("is_public", models.BooleanField(default=True, verbose_name="Public")),
                ("sentiment", models.CharField(choices=[("positive", "Positive"), ("neutral", "Neutral"), ("negative", "Negative")], db_index=True, max_length=10, verbose_name="Sentiment")),
                ("author", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="report_feedback", to=settings.AUTH_USER_MODEL, verbose_name="Author")),
                ("report", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="feedback", to="reports.report", verbose_name="Report")),
            ],
            options={
                "verbose_name": "Report Feedback",
                "verbose_name_plural": "Report Feedback",
                "ordering": ["-created_at", "-id"],
                "constraints": [
                    models.UniqueConstraint(fields=("report", "author"), name="feedback_once_per_report_author"),
                    models.CheckConstraint(condition=_bounded("rating"), name="feedback_rating_within_bounds"),
                    models.CheckConstraint(condition=_bounded("quality_of_work", nullable=True), name="feedback_quality_of_work_within_bounds"),
                    models.CheckConstraint(condition=_bounded("timeliness", nullable=True), name="feedback_timeliness_within_bounds"),
                    models.CheckConstraint(condition=_bounded("communication", nullable=True), name="feedback_communication_within_bounds"),
                    models.CheckConstraint(condition=_bounded("professionalism", nullable=True), name="feedback_professionalism_within_bounds"),
                ],
            },
        ),
    ]
