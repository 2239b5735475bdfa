"""
Gallery app ViewSets.

ViewSets
--------
- ``ReportGallerySubmissionViewSet`` — per-report list / submit, nested
  under ``/api/reports/{report_pk}/gallery-submissions/``.
- ``GallerySubmissionViewSet``       — review actions, deletion, queues
  and the public gallery under ``/api/gallery-submissions/``.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from .serializers import (
    EligibleReportSerializer,
    GalleryApproveSerializer,
    GalleryFeatureSerializer,
    GalleryRejectSerializer,
    GalleryStatsSerializer,
    GallerySubmissionCreateSerializer,
    GallerySubmissionSerializer,
)
from .services import GalleryQueryService, GallerySubmissionService


class ReportGallerySubmissionViewSet(viewsets.ViewSet):
    """Gallery submissions belonging to one report."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List a report's gallery submissions",
        responses={200: OpenApiResponse(response=GallerySubmissionSerializer(many=True), description="Submissions.")},
        tags=["Gallery"],
    )
    def list(self, request: Request, report_pk: int = None) -> Response:
        qs = GalleryQueryService.list_for_report(request.user, report_pk)
        return Response(GallerySubmissionSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Submit a before/after pair",
        description="Assigned staff only; the report must be completed.",
        request=GallerySubmissionCreateSerializer,
        responses={
            201: OpenApiResponse(response=GallerySubmissionSerializer, description="Submitted, pending review."),
            403: OpenApiResponse(description="Not the report's assigned staff member."),
            409: OpenApiResponse(description="Before image already submitted."),
            412: OpenApiResponse(description="Report is not completed."),
        },
        tags=["Gallery"],
    )
    def create(self, request: Request, report_pk: int = None) -> Response:
        serializer = GallerySubmissionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        submission = GallerySubmissionService.submit(report_pk, serializer.validated_data, request.user)
        return Response(GallerySubmissionSerializer(submission).data, status=status.HTTP_201_CREATED)


class GallerySubmissionViewSet(viewsets.ViewSet):
    """Review, moderation and read queues for gallery submissions."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Retrieve a gallery submission",
        responses={200: OpenApiResponse(response=GallerySubmissionSerializer, description="Submission.")},
        tags=["Gallery"],
    )
    def retrieve(self, request: Request, pk: int = None) -> Response:
        submission = GalleryQueryService.get_submission(request.user, pk)
        return Response(GallerySubmissionSerializer(submission).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Delete a gallery submission",
        responses={204: OpenApiResponse(description="Deleted."), 403: OpenApiResponse(description="Permission denied.")},
        tags=["Gallery"],
    )
    def destroy(self, request: Request, pk: int = None) -> Response:
        GallerySubmissionService.delete(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ── Review @actions ──────────────────────────────────────────────

    @action(detail=True, methods=["post"], url_path="approve")
    @extend_schema(
        summary="Approve a gallery submission",
        request=GalleryApproveSerializer,
        responses={
            200: OpenApiResponse(response=GallerySubmissionSerializer, description="Approved."),
            412: OpenApiResponse(description="Submission is not pending."),
        },
        tags=["Gallery – Review"],
    )
    def approve(self, request: Request, pk: int = None) -> Response:
        serializer = GalleryApproveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        submission = GallerySubmissionService.approve(
            pk,
            request.user,
            admin_notes=serializer.validated_data["admin_notes"],
            featured=serializer.validated_data["featured"],
        )
        return Response(GallerySubmissionSerializer(submission).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="reject")
    @extend_schema(
        summary="Reject a gallery submission",
        request=GalleryRejectSerializer,
        responses={
            200: OpenApiResponse(response=GallerySubmissionSerializer, description="Rejected."),
            412: OpenApiResponse(description="Submission is not pending."),
        },
        tags=["Gallery – Review"],
    )
    def reject(self, request: Request, pk: int = None) -> Response:
        serializer = GalleryRejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        submission = GallerySubmissionService.reject(
            pk,
            request.user,
            reason=serializer.validated_data["rejection_reason"],
            admin_notes=serializer.validated_data["admin_notes"],
        )
        return Response(GallerySubmissionSerializer(submission).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="feature")
    @extend_schema(
        summary="Feature or unfeature an approved submission",
        request=GalleryFeatureSerializer,
        responses={
            200: OpenApiResponse(response=GallerySubmissionSerializer, description="Updated."),
            412: OpenApiResponse(description="Submission is not approved."),
        },
        tags=["Gallery – Review"],
    )
    def feature(self, request: Request, pk: int = None) -> Response:
        serializer = GalleryFeatureSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        submission = GallerySubmissionService.set_featured(
            pk, serializer.validated_data["featured"], request.user,
        )
        return Response(GallerySubmissionSerializer(submission).data, status=status.HTTP_200_OK)

    # ── Queues ───────────────────────────────────────────────────────

    @action(detail=False, methods=["get"], url_path="pending")
    @extend_schema(
        summary="Pending review queue",
        responses={200: OpenApiResponse(response=GallerySubmissionSerializer(many=True), description="Oldest first.")},
        tags=["Gallery – Review"],
    )
    def pending(self, request: Request) -> Response:
        qs = GalleryQueryService.pending_queue(request.user)
        return Response(GallerySubmissionSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="mine")
    @extend_schema(
        summary="My gallery uploads",
        responses={200: OpenApiResponse(response=GallerySubmissionSerializer(many=True), description="Caller's submissions.")},
        tags=["Gallery"],
    )
    def mine(self, request: Request) -> Response:
        qs = GalleryQueryService.my_uploads(request.user)
        return Response(GallerySubmissionSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="public", permission_classes=[AllowAny])
    @extend_schema(
        summary="Public gallery",
        description="Approved submissions, featured first. No authentication required.",
        responses={200: OpenApiResponse(response=GallerySubmissionSerializer(many=True), description="Approved submissions.")},
        tags=["Gallery"],
    )
    def public(self, request: Request) -> Response:
        qs = GalleryQueryService.public_gallery()
        return Response(GallerySubmissionSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="stats")
    @extend_schema(
        summary="Gallery statistics",
        responses={200: OpenApiResponse(response=GalleryStatsSerializer, description="Counts per status.")},
        tags=["Gallery – Review"],
    )
    def stats(self, request: Request) -> Response:
        return Response(
            GalleryStatsSerializer(GalleryQueryService.stats(request.user)).data,
            status=status.HTTP_200_OK,
        )

    @action(detail=False, methods=["get"], url_path="eligible-reports")
    @extend_schema(
        summary="Reports eligible for a gallery submission",
        responses={200: OpenApiResponse(response=EligibleReportSerializer(many=True), description="Completed reports assigned to the caller.")},
        tags=["Gallery"],
    )
    def eligible_reports(self, request: Request) -> Response:
        qs = GalleryQueryService.eligible_reports(request.user)
        return Response(EligibleReportSerializer(qs, many=True).data, status=status.HTTP_200_OK)
