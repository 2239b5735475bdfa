"""
Staff app URL configuration.

  /api/staff/                       → list / create
  /api/staff/{id}/                  → retrieve / partial_update
  POST /api/staff/{id}/deactivate/  → stop new assignments
  POST /api/staff/{id}/activate/    → resume new assignments
  GET  /api/staff/rank/?category=   → ranked candidates for a category
"""

from rest_framework.routers import DefaultRouter

from .views import StaffViewSet

router = DefaultRouter()
router.register(
    prefix=r"staff",
    viewset=StaffViewSet,
    basename="staff",
)

urlpatterns = router.urls
