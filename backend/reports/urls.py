"""
Reports app URL configuration.

  /api/reports/                                 → list / create
  /api/reports/stats/                           → counters per named view
  /api/reports/{id}/                            → retrieve / partial_update / destroy
  POST /api/reports/{id}/assign/
  POST /api/reports/{id}/progress/
  POST /api/reports/{id}/complete/
  POST /api/reports/{id}/approve-completion/
  POST /api/reports/{id}/reject-completion/
  POST /api/reports/{id}/force-status/
  GET  /api/reports/{id}/progress-history/
  GET  /api/reports/{id}/staff-candidates/
  GET  /api/reports/{id}/comments/              → list | POST add
  DELETE /api/reports/{id}/comments/{comment_id}/
  POST /api/reports/{id}/upvote/                → toggle

``router`` is exported so the gallery and feedback apps can nest their
per-report routes under ``/api/reports/{report_pk}/``.
"""

from rest_framework.routers import DefaultRouter

from .views import ReportViewSet

router = DefaultRouter()
router.register(
    prefix=r"reports",
    viewset=ReportViewSet,
    basename="report",
)

urlpatterns = router.urls
