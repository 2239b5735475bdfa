import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="StaffProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("specialization_category", models.CharField(db_index=True, help_text="Primary kind of work, e.g. 'road_repair' or 'Lighting'.", max_length=100, verbose_name="Specialization")),
                ("additional_categories", models.JSONField(blank=True, default=list, help_text="List of further categories this staff member can handle.", verbose_name="Additional Categories")),
                ("is_active", models.BooleanField(db_index=True, default=True, help_text="Inactive staff never receive new assignments.", verbose_name="Active")),
                ("phone_number", models.CharField(blank=True, default="", max_length=20, verbose_name="Contact Phone")),
                ("user", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="staff_profile", to=settings.AUTH_USER_MODEL, verbose_name="User Account")),
            ],
            options={
                "verbose_name": "Staff Profile",
                "verbose_name_plural": "Staff Profiles",
                "ordering": ["user__first_name", "user__last_name", "id"],
            },
        ),
    ]
