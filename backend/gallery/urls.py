"""
Gallery app URL configuration.

  /api/reports/{report_pk}/gallery-submissions/     → list / submit
  /api/gallery-submissions/{id}/                    → retrieve / destroy
  POST /api/gallery-submissions/{id}/approve/
  POST /api/gallery-submissions/{id}/reject/
  POST /api/gallery-submissions/{id}/feature/
  GET  /api/gallery-submissions/pending/ | mine/ | public/ | stats/ | eligible-reports/
"""

from rest_framework.routers import DefaultRouter
from rest_framework_nested.routers import NestedSimpleRouter

from reports.urls import router as reports_router

from .views import GallerySubmissionViewSet, ReportGallerySubmissionViewSet

router = DefaultRouter()
router.register(
    prefix=r"gallery-submissions",
    viewset=GallerySubmissionViewSet,
    basename="gallery-submission",
)

report_router = NestedSimpleRouter(reports_router, r"reports", lookup="report")
report_router.register(
    prefix=r"gallery-submissions",
    viewset=ReportGallerySubmissionViewSet,
    basename="report-gallery-submission",
)

urlpatterns = router.urls + report_router.urls
