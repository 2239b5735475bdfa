"""
Reports app ViewSets.

Architecture: Views are intentionally thin.
Every view follows the strict three-step pattern:

    1. Parse / validate input via a serializer.
    2. Delegate all business logic to the appropriate service class.
    3. Serialize the result and return a DRF ``Response``.

ViewSets
--------
- ``ReportViewSet`` — report CRUD plus one @action per lifecycle
  transition, the audit trail, per-view counters, the staff
  candidate ranking used by the assignment screen, and the
  comment thread and upvote toggle.
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

from staff.serializers import StaffRankingSerializer, ranking_payload
from staff.services import AssignmentMatcherService

from .serializers import (
    ApproveCompletionSerializer,
    ForceStatusSerializer,
    RejectCompletionSerializer,
    ReportAssignSerializer,
    ReportCommentCreateSerializer,
    ReportCommentSerializer,
    ReportCompleteSerializer,
    ReportCreateSerializer,
    ReportDetailSerializer,
    ReportFilterSerializer,
    ReportListSerializer,
    ReportProgressSerializer,
    ReportProgressUpdateSerializer,
    ReportUpdateSerializer,
    ReportUpvoteSerializer,
    ReportViewCountsSerializer,
)
from .services import (
    AdminReviewService,
    ReportCreationService,
    ReportEngagementService,
    ReportLifecycleService,
    ReportQueryService,
)

_CONFLICT = OpenApiResponse(description="expected_status no longer matches; re-fetch and retry.")
_PRECONDITION = OpenApiResponse(description="Transition not allowed from the current state.")


class ReportViewSet(viewsets.ViewSet):
    """
    Central ViewSet for the reports app.

    Permission Strategy
    -------------------
    The base permission is ``IsAuthenticated``.  Role and ownership
    checks live in ``reports.services``; visibility is role-scoped by
    ``ReportQueryService``.
    """

    permission_classes = [IsAuthenticated]

    def _detail(self, report, request: Request) -> Response:
        out = ReportDetailSerializer(report, context={"request": request})
        return Response(out.data, status=status.HTTP_200_OK)

    # ── Standard CRUD ────────────────────────────────────────────────

    @extend_schema(
        summary="List reports",
        description=(
            "List reports visible to the caller: citizens see their own, staff "
            "see reports assigned to them, admins see all.  Supports named "
            "views, text search, category/priority filters and ordering."
        ),
        parameters=[
            OpenApiParameter(name="view", type=str, location=OpenApiParameter.QUERY, description="all, pending_assignment, in_progress, needs_review, completed_approved."),
            OpenApiParameter(name="search", type=str, location=OpenApiParameter.QUERY, description="Title, description, location or reporter name."),
            OpenApiParameter(name="category", type=str, location=OpenApiParameter.QUERY, description="Filter by category."),
            OpenApiParameter(name="priority", type=str, location=OpenApiParameter.QUERY, description="Filter by priority."),
            OpenApiParameter(name="ordering", type=str, location=OpenApiParameter.QUERY, description="e.g. -created_at, priority, -progress."),
            OpenApiParameter(name="assigned_to_me", type=bool, location=OpenApiParameter.QUERY, description="Only reports assigned to the caller."),
            OpenApiParameter(name="staff", type=int, location=OpenApiParameter.QUERY, description="Filter by assigned staff profile PK."),
        ],
        responses={200: OpenApiResponse(response=ReportListSerializer(many=True), description="Filtered reports.")},
        tags=["Reports"],
    )
    def list(self, request: Request) -> Response:
        filter_serializer = ReportFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        qs = ReportQueryService.get_filtered_queryset(request.user, filter_serializer.validated_data)
        out = ReportListSerializer(qs, many=True, context={"request": request})
        return Response(out.data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Submit a report",
        request=ReportCreateSerializer,
        responses={
            201: OpenApiResponse(response=ReportDetailSerializer, description="Report created as pending."),
            400: OpenApiResponse(description="Validation error."),
            403: OpenApiResponse(description="Staff members cannot file reports."),
        },
        tags=["Reports"],
    )
    def create(self, request: Request) -> Response:
        serializer = ReportCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ReportCreationService.create_report(serializer.validated_data, request.user)
        out = ReportDetailSerializer(report, context={"request": request})
        return Response(out.data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Retrieve a report",
        responses={
            200: OpenApiResponse(response=ReportDetailSerializer, description="Report detail."),
            404: OpenApiResponse(description="Not found or not visible to the caller."),
        },
        tags=["Reports"],
    )
    def retrieve(self, request: Request, pk: int = None) -> Response:
        report = ReportQueryService.get_report_detail(request.user, pk)
        return self._detail(report, request)

    @extend_schema(
        summary="Edit a pending report",
        description=(
            "Partial update of the submission fields. Only the reporter or an "
            "admin, and only while the report is still pending."
        ),
        request=ReportUpdateSerializer,
        responses={
            200: OpenApiResponse(response=ReportDetailSerializer, description="Updated report."),
            400: OpenApiResponse(description="Validation error."),
            403: OpenApiResponse(description="Not the reporter or an admin."),
            412: OpenApiResponse(description="Report is no longer pending."),
        },
        tags=["Reports"],
    )
    def partial_update(self, request: Request, pk: int = None) -> Response:
        serializer = ReportUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        report = ReportCreationService.update_report(pk, serializer.validated_data, request.user)
        return self._detail(report, request)

    @extend_schema(
        summary="Delete a report",
        description="Hard delete with audit trail and gallery submissions. Admin only.",
        responses={204: OpenApiResponse(description="Deleted."), 403: OpenApiResponse(description="Permission denied.")},
        tags=["Reports"],
    )
    def destroy(self, request: Request, pk: int = None) -> Response:
        ReportCreationService.delete_report(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ── Read-only sub-resources ──────────────────────────────────────

    @action(detail=False, methods=["get"], url_path="stats")
    @extend_schema(
        summary="Report counters per view",
        responses={200: OpenApiResponse(response=ReportViewCountsSerializer, description="Counts per named view.")},
        tags=["Reports"],
    )
    def stats(self, request: Request) -> Response:
        counts = ReportQueryService.get_view_counts(request.user)
        return Response(ReportViewCountsSerializer(counts).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["get"], url_path="progress-history")
    @extend_schema(
        summary="Report audit trail",
        description="Every lifecycle transition of the report, oldest first.",
        responses={200: OpenApiResponse(response=ReportProgressUpdateSerializer(many=True), description="Audit entries.")},
        tags=["Reports"],
    )
    def progress_history(self, request: Request, pk: int = None) -> Response:
        entries = ReportQueryService.get_progress_history(request.user, pk)
        return Response(ReportProgressUpdateSerializer(entries, many=True).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["get"], url_path="staff-candidates")
    @extend_schema(
        summary="Rank staff for this report",
        description=(
            "Ranked assignment candidates for the report's category. The "
            "ranking is advisory; assigning is a separate call. Admin only."
        ),
        responses={200: OpenApiResponse(response=StaffRankingSerializer, description="Ranked candidates.")},
        tags=["Reports – Assignment"],
    )
    def staff_candidates(self, request: Request, pk: int = None) -> Response:
        report = ReportQueryService.get_report_detail(request.user, pk)
        matches = AssignmentMatcherService.rank_staff_for_category(report.category, request.user)
        return Response(
            StaffRankingSerializer(ranking_payload(report.category, matches)).data,
            status=status.HTTP_200_OK,
        )

    # ── Comments & upvotes ───────────────────────────────────────────

    @action(detail=True, methods=["get", "post"], url_path="comments")
    @extend_schema(
        summary="Report comment thread",
        description=(
            "GET lists the comments oldest first; POST appends one. Open to "
            "everyone who can see the report."
        ),
        request=ReportCommentCreateSerializer,
        responses={
            200: OpenApiResponse(response=ReportCommentSerializer(many=True), description="Comments."),
            201: OpenApiResponse(response=ReportCommentSerializer, description="Comment added."),
            404: OpenApiResponse(description="Not found or not visible to the caller."),
        },
        tags=["Reports – Discussion"],
    )
    def comments(self, request: Request, pk: int = None) -> Response:
        if request.method == "GET":
            qs = ReportEngagementService.list_comments(request.user, pk)
            return Response(ReportCommentSerializer(qs, many=True).data, status=status.HTTP_200_OK)

        serializer = ReportCommentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = ReportEngagementService.add_comment(pk, serializer.validated_data["text"], request.user)
        return Response(ReportCommentSerializer(comment).data, status=status.HTTP_201_CREATED)

    @action(
        detail=True,
        methods=["delete"],
        url_path=r"comments/(?P<comment_id>\d+)",
        url_name="comment-detail",
    )
    @extend_schema(
        summary="Delete a comment",
        responses={204: OpenApiResponse(description="Deleted."), 403: OpenApiResponse(description="Not the author or an admin.")},
        tags=["Reports – Discussion"],
    )
    def delete_comment(self, request: Request, pk: int = None, comment_id: int = None) -> Response:
        ReportEngagementService.delete_comment(pk, comment_id, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="upvote")
    @extend_schema(
        summary="Toggle the caller's upvote",
        request=None,
        responses={200: OpenApiResponse(response=ReportUpvoteSerializer, description="Upvote state after the toggle.")},
        tags=["Reports – Discussion"],
    )
    def upvote(self, request: Request, pk: int = None) -> Response:
        result = ReportEngagementService.toggle_upvote(pk, request.user)
        return Response(ReportUpvoteSerializer(result).data, status=status.HTTP_200_OK)

    # ── Lifecycle @actions ───────────────────────────────────────────

    @action(detail=True, methods=["post"], url_path="assign")
    @extend_schema(
        summary="Assign report to staff",
        description="Move a pending report to assigned (25%). Admin only.",
        request=ReportAssignSerializer,
        responses={
            200: OpenApiResponse(response=ReportDetailSerializer, description="Assigned."),
            400: OpenApiResponse(description="Unknown or inactive staff member."),
            403: OpenApiResponse(description="Permission denied."),
            404: OpenApiResponse(description="Report not found."),
            409: _CONFLICT,
            412: _PRECONDITION,
        },
        tags=["Reports – Assignment"],
    )
    def assign(self, request: Request, pk: int = None) -> Response:
        serializer = ReportAssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        report = ReportLifecycleService.assign(
            pk,
            staff_id=data["staff_id"],
            actor=request.user,
            due_date=data["due_date"],
            notes=data["notes"],
            expected_status=data["expected_status"],
        )
        return self._detail(report, request)

    @action(detail=True, methods=["post"], url_path="progress")
    @extend_schema(
        summary="Record progress",
        description=(
            "Record a progress percentage (clamped to 0-100, never lower than "
            "the current value).  100% completes the report and opens an "
            "admin review.  Assigned staff or admin."
        ),
        request=ReportProgressSerializer,
        responses={
            200: OpenApiResponse(response=ReportDetailSerializer, description="Progress recorded."),
            400: OpenApiResponse(description="Progress would decrease."),
            403: OpenApiResponse(description="Not the assigned staff member."),
            409: _CONFLICT,
            412: _PRECONDITION,
        },
        tags=["Reports – Workflow"],
    )
    def progress(self, request: Request, pk: int = None) -> Response:
        serializer = ReportProgressSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        report = ReportLifecycleService.update_progress(
            pk,
            percentage=data["percentage"],
            description=data["description"],
            actor=request.user,
            expected_status=data["expected_status"],
        )
        return self._detail(report, request)

    @action(detail=True, methods=["post"], url_path="complete")
    @extend_schema(
        summary="Mark work completed",
        request=ReportCompleteSerializer,
        responses={
            200: OpenApiResponse(response=ReportDetailSerializer, description="Completed, awaiting review."),
            403: OpenApiResponse(description="Not the assigned staff member."),
            409: _CONFLICT,
            412: _PRECONDITION,
        },
        tags=["Reports – Workflow"],
    )
    def complete(self, request: Request, pk: int = None) -> Response:
        serializer = ReportCompleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ReportLifecycleService.complete(
            pk,
            notes=serializer.validated_data["notes"],
            actor=request.user,
            expected_status=serializer.validated_data["expected_status"],
        )
        return self._detail(report, request)

    @action(detail=True, methods=["post"], url_path="approve-completion")
    @extend_schema(
        summary="Approve completed work",
        request=ApproveCompletionSerializer,
        responses={
            200: OpenApiResponse(response=ReportDetailSerializer, description="Approved (terminal)."),
            403: OpenApiResponse(description="Permission denied."),
            412: OpenApiResponse(description="Report is not awaiting review."),
        },
        tags=["Reports – Review"],
    )
    def approve_completion(self, request: Request, pk: int = None) -> Response:
        serializer = ApproveCompletionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = AdminReviewService.approve_completion(
            pk, request.user, serializer.validated_data["admin_notes"],
        )
        return self._detail(report, request)

    @action(detail=True, methods=["post"], url_path="reject-completion")
    @extend_schema(
        summary="Reject completed work",
        description="Send the report back to in_progress at 75% with a required reason.",
        request=RejectCompletionSerializer,
        responses={
            200: OpenApiResponse(response=ReportDetailSerializer, description="Sent back to work."),
            400: OpenApiResponse(description="Reason missing."),
            403: OpenApiResponse(description="Permission denied."),
            412: OpenApiResponse(description="Report is not awaiting review."),
        },
        tags=["Reports – Review"],
    )
    def reject_completion(self, request: Request, pk: int = None) -> Response:
        serializer = RejectCompletionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = AdminReviewService.reject_completion(
            pk, request.user, serializer.validated_data["rejection_reason"],
        )
        return self._detail(report, request)

    @action(detail=True, methods=["post"], url_path="force-status")
    @extend_schema(
        summary="Force a report status",
        description="Administrative override from any non-terminal state. Admin only.",
        request=ForceStatusSerializer,
        responses={
            200: OpenApiResponse(response=ReportDetailSerializer, description="Status forced."),
            400: OpenApiResponse(description="Same status or unknown status."),
            403: OpenApiResponse(description="Permission denied."),
            409: _CONFLICT,
            412: _PRECONDITION,
        },
        tags=["Reports – Workflow"],
    )
    def force_status(self, request: Request, pk: int = None) -> Response:
        serializer = ForceStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        report = ReportLifecycleService.force_status(
            pk,
            new_status=data["status"],
            actor=request.user,
            notes=data["notes"],
            expected_status=data["expected_status"],
        )
        return self._detail(report, request)
