"""
Staff app serializers.
"""

from __future__ import annotations

from typing import Any

from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from reports.models import ReportCategory

from .matching import normalize_category
from .models import StaffProfile


def _clean_categories(value: list[str]) -> list[str]:
    cleaned: list[str] = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise serializers.ValidationError("Categories must be non-empty strings.")
        if normalize_category(item) not in {normalize_category(c) for c in cleaned}:
            cleaned.append(item.strip())
    return cleaned


class StaffFilterSerializer(serializers.Serializer):
    is_active = serializers.BooleanField(required=False, allow_null=True, default=None)
    search = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        if attrs.get("is_active") is None:
            attrs.pop("is_active", None)
        return attrs


class StaffProfileSerializer(serializers.ModelSerializer):
    """Read model for directory listings and detail."""

    username = serializers.CharField(source="user.username", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)
    name = serializers.CharField(source="display_name", read_only=True)
    open_assignments = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = StaffProfile
        fields = [
            "id",
            "user",
            "username",
            "name",
            "email",
            "phone_number",
            "specialization_category",
            "additional_categories",
            "is_active",
            "open_assignments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class StaffCreateSerializer(serializers.Serializer):
    """Creates the staff user account and profile in one request."""

    username = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8, style={"input_type": "password"})
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    phone_number = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    specialization_category = serializers.CharField(max_length=100)
    additional_categories = serializers.ListField(
        child=serializers.CharField(max_length=100),
        required=False,
        default=list,
    )
    is_active = serializers.BooleanField(required=False, default=True)

    def validate_password(self, value: str) -> str:
        validate_password(value)
        return value

    def validate_additional_categories(self, value: list[str]) -> list[str]:
        return _clean_categories(value)


class StaffUpdateSerializer(serializers.ModelSerializer):
    additional_categories = serializers.ListField(
        child=serializers.CharField(max_length=100),
        required=False,
    )

    class Meta:
        model = StaffProfile
        fields = [
            "specialization_category",
            "additional_categories",
            "phone_number",
            "is_active",
        ]

    def validate_additional_categories(self, value: list[str]) -> list[str]:
        return _clean_categories(value)


class StaffRankQuerySerializer(serializers.Serializer):
    category = serializers.CharField()

    def validate_category(self, value: str) -> str:
        category = normalize_category(value)
        if category not in ReportCategory.values:
            raise serializers.ValidationError(f"\"{value}\" is not a valid report category.")
        return category


class StaffMatchSerializer(serializers.Serializer):
    """One ranked candidate produced by the assignment matcher."""

    staff_id = serializers.IntegerField()
    name = serializers.CharField()
    tier = serializers.SerializerMethodField()
    open_assignments = serializers.IntegerField()

    def get_tier(self, obj) -> str:
        return obj.tier.label


class StaffRankingSerializer(serializers.Serializer):
    """
    Response of the ranking endpoints.

    ``no_staff_available`` is ``true`` when there is no active staff at
    all; clients must surface that instead of attempting an assignment.
    """

    category = serializers.CharField()
    staff_ids = serializers.ListField(child=serializers.IntegerField())
    results = StaffMatchSerializer(many=True)
    no_staff_available = serializers.BooleanField()


def ranking_payload(category: str, matches: list) -> dict[str, Any]:
    return {
        "category": category,
        "staff_ids": [m.staff_id for m in matches],
        "results": matches,
        "no_staff_available": not matches,
    }
