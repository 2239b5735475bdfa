"""
Staff app ViewSets.

Thin views: validate with a serializer, call ``staff.services``, and
serialize the result.  Role checks live in the services.

ViewSets
--------
- ``StaffViewSet`` — staff directory CRUD, activation toggles and the
  category ranking used when assigning reports.
"""

from __future__ import annotations

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from .serializers import (
    StaffCreateSerializer,
    StaffFilterSerializer,
    StaffProfileSerializer,
    StaffRankingSerializer,
    StaffRankQuerySerializer,
    StaffUpdateSerializer,
    ranking_payload,
)
from .services import AssignmentMatcherService, StaffDirectoryService


class StaffViewSet(viewsets.ViewSet):
    """
    Staff directory endpoints under ``/api/staff/``.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List staff",
        description="List staff profiles with their current open-assignment count. Admin only.",
        parameters=[
            OpenApiParameter(name="is_active", type=bool, location=OpenApiParameter.QUERY, description="Filter by activity flag."),
            OpenApiParameter(name="search", type=str, location=OpenApiParameter.QUERY, description="Name, username or specialization."),
        ],
        responses={200: OpenApiResponse(response=StaffProfileSerializer(many=True), description="Staff directory.")},
        tags=["Staff"],
    )
    def list(self, request: Request) -> Response:
        filter_serializer = StaffFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        qs = StaffDirectoryService.list_staff(request.user, filter_serializer.validated_data)
        return Response(StaffProfileSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Add a staff member",
        description="Create a staff user account together with its directory profile. Admin only.",
        request=StaffCreateSerializer,
        responses={
            201: OpenApiResponse(response=StaffProfileSerializer, description="Staff member created."),
            403: OpenApiResponse(description="Permission denied."),
            409: OpenApiResponse(description="Username or e-mail taken."),
        },
        tags=["Staff"],
    )
    def create(self, request: Request) -> Response:
        serializer = StaffCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        profile = StaffDirectoryService.create_staff(serializer.validated_data, request.user)
        return Response(StaffProfileSerializer(profile).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Retrieve a staff member",
        responses={
            200: OpenApiResponse(response=StaffProfileSerializer, description="Staff profile."),
            404: OpenApiResponse(description="Staff member not found."),
        },
        tags=["Staff"],
    )
    def retrieve(self, request: Request, pk: int = None) -> Response:
        profile = StaffDirectoryService.get_staff(request.user, pk)
        return Response(StaffProfileSerializer(profile).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Update a staff member",
        request=StaffUpdateSerializer,
        responses={200: OpenApiResponse(response=StaffProfileSerializer, description="Updated profile.")},
        tags=["Staff"],
    )
    def partial_update(self, request: Request, pk: int = None) -> Response:
        serializer = StaffUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        profile = StaffDirectoryService.update_staff(pk, serializer.validated_data, request.user)
        return Response(StaffProfileSerializer(profile).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="deactivate")
    @extend_schema(
        summary="Deactivate a staff member",
        description="Stop offering this staff member for new assignments. Admin only.",
        request=None,
        responses={200: OpenApiResponse(response=StaffProfileSerializer, description="Deactivated.")},
        tags=["Staff"],
    )
    def deactivate(self, request: Request, pk: int = None) -> Response:
        profile = StaffDirectoryService.set_active(pk, False, request.user)
        return Response(StaffProfileSerializer(profile).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="activate")
    @extend_schema(
        summary="Reactivate a staff member",
        request=None,
        responses={200: OpenApiResponse(response=StaffProfileSerializer, description="Activated.")},
        tags=["Staff"],
    )
    def activate(self, request: Request, pk: int = None) -> Response:
        profile = StaffDirectoryService.set_active(pk, True, request.user)
        return Response(StaffProfileSerializer(profile).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="rank")
    @extend_schema(
        summary="Rank staff for a category",
        description=(
            "Rank active staff for a report category: direct matches, then "
            "variation matches, then the general pool, each by ascending "
            "open-assignment count. Admin only."
        ),
        parameters=[
            OpenApiParameter(name="category", type=str, location=OpenApiParameter.QUERY, required=True, description="Report category."),
        ],
        responses={200: OpenApiResponse(response=StaffRankingSerializer, description="Ranked candidates.")},
        tags=["Staff"],
    )
    def rank(self, request: Request) -> Response:
        query = StaffRankQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        category = query.validated_data["category"]
        matches = AssignmentMatcherService.rank_staff_for_category(category, request.user)
        return Response(
            StaffRankingSerializer(ranking_payload(category, matches)).data,
            status=status.HTTP_200_OK,
        )
