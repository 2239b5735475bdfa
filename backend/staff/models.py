"""
Staff app models.

``StaffProfile`` is the Staff Directory entry for a ``staff``-role user:
what kind of work they do, whether they can take new assignments, and
how to reach them.  Current load (open assignments) is derived from the
reports assigned to the profile, never stored.
"""

from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


class StaffProfile(TimeStampedModel):
    """
    Directory entry for a field staff member.

    ``specialization_category`` and ``additional_categories`` are free
    text as entered by admins ("Road Repair", "street light"); the
    assignment matcher normalizes them at match time.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="staff_profile",
        verbose_name="User Account",
    )
    specialization_category = models.CharField(
        max_length=100,
        db_index=True,
        verbose_name="Specialization",
        help_text="Primary kind of work, e.g. 'road_repair' or 'Lighting'.",
    )
    additional_categories = models.JSONField(
        default=list,
        blank=True,
        verbose_name="Additional Categories",
        help_text="List of further categories this staff member can handle.",
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        verbose_name="Active",
        help_text="Inactive staff never receive new assignments.",
    )
    phone_number = models.CharField(
        max_length=20,
        blank=True,
        default="",
        verbose_name="Contact Phone",
    )

    class Meta:
        verbose_name = "Staff Profile"
        verbose_name_plural = "Staff Profiles"
        ordering = ["user__first_name", "user__last_name", "id"]

    def __str__(self):
        return f"{self.display_name} ({self.specialization_category})"

    @property
    def display_name(self) -> str:
        return self.user.get_full_name() or self.user.username
