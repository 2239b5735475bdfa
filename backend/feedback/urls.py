"""
Feedback app URL configuration.

  /api/reports/{report_pk}/feedback/   → list / submit
  /api/feedback/{id}/                  → retrieve / partial_update / destroy
  GET  /api/feedback/mine/ | stats/
"""

from rest_framework.routers import DefaultRouter
from rest_framework_nested.routers import NestedSimpleRouter

from reports.urls import router as reports_router

from .views import FeedbackViewSet, ReportFeedbackViewSet

router = DefaultRouter()
router.register(
    prefix=r"feedback",
    viewset=FeedbackViewSet,
    basename="feedback",
)

report_router = NestedSimpleRouter(reports_router, r"reports", lookup="report")
report_router.register(
    prefix=r"feedback",
    viewset=ReportFeedbackViewSet,
    basename="report-feedback",
)

urlpatterns = router.urls + report_router.urls
