"""
Feedback app ViewSets.

ViewSets
--------
- ``ReportFeedbackViewSet`` — per-report list / submit, nested under
  ``/api/reports/{report_pk}/feedback/``.
- ``FeedbackViewSet``       — retrieve, edit and delete one entry, the
  caller's own feedback and public statistics under ``/api/feedback/``.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from .serializers import (
    FeedbackStatsSerializer,
    ReportFeedbackSerializer,
    ReportFeedbackWriteSerializer,
)
from .services import FeedbackQueryService, FeedbackService


class ReportFeedbackViewSet(viewsets.ViewSet):
    """Feedback left on one report."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List a report's feedback",
        description="Public entries plus the caller's own; admins see all.",
        responses={200: OpenApiResponse(response=ReportFeedbackSerializer(many=True), description="Feedback.")},
        tags=["Feedback"],
    )
    def list(self, request: Request, report_pk: int = None) -> Response:
        qs = FeedbackQueryService.list_for_report(request.user, report_pk)
        return Response(ReportFeedbackSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Rate a resolved report",
        description="The reporter only, once, after the completion was approved.",
        request=ReportFeedbackWriteSerializer,
        responses={
            201: OpenApiResponse(response=ReportFeedbackSerializer, description="Feedback recorded."),
            400: OpenApiResponse(description="Rating missing or out of range."),
            403: OpenApiResponse(description="Caller did not file the report."),
            409: OpenApiResponse(description="Feedback already left for this report."),
            412: OpenApiResponse(description="Report completion is not approved."),
        },
        tags=["Feedback"],
    )
    def create(self, request: Request, report_pk: int = None) -> Response:
        serializer = ReportFeedbackWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        feedback = FeedbackService.submit(report_pk, serializer.validated_data, request.user)
        return Response(ReportFeedbackSerializer(feedback).data, status=status.HTTP_201_CREATED)


class FeedbackViewSet(viewsets.ViewSet):

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Retrieve feedback",
        responses={200: OpenApiResponse(response=ReportFeedbackSerializer, description="Feedback.")},
        tags=["Feedback"],
    )
    def retrieve(self, request: Request, pk: int = None) -> Response:
        feedback = FeedbackQueryService.get_feedback(request.user, pk)
        return Response(ReportFeedbackSerializer(feedback).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Edit your feedback",
        request=ReportFeedbackWriteSerializer,
        responses={
            200: OpenApiResponse(response=ReportFeedbackSerializer, description="Updated."),
            403: OpenApiResponse(description="Not the author."),
        },
        tags=["Feedback"],
    )
    def partial_update(self, request: Request, pk: int = None) -> Response:
        serializer = ReportFeedbackWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        feedback = FeedbackService.update(pk, serializer.validated_data, request.user)
        return Response(ReportFeedbackSerializer(feedback).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Delete feedback",
        responses={204: OpenApiResponse(description="Deleted."), 403: OpenApiResponse(description="Permission denied.")},
        tags=["Feedback"],
    )
    def destroy(self, request: Request, pk: int = None) -> Response:
        FeedbackService.delete(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"], url_path="mine")
    @extend_schema(
        summary="My feedback",
        responses={200: OpenApiResponse(response=ReportFeedbackSerializer(many=True), description="Caller's feedback.")},
        tags=["Feedback"],
    )
    def mine(self, request: Request) -> Response:
        qs = FeedbackQueryService.mine(request.user)
        return Response(ReportFeedbackSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="stats", permission_classes=[AllowAny])
    @extend_schema(
        summary="Feedback statistics",
        description="Rating distribution and averages over public feedback. No authentication required.",
        responses={200: OpenApiResponse(response=FeedbackStatsSerializer, description="Aggregates.")},
        tags=["Feedback"],
    )
    def stats(self, request: Request) -> Response:
        return Response(
            FeedbackStatsSerializer(FeedbackQueryService.stats()).data,
            status=status.HTTP_200_OK,
        )
