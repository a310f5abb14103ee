"""
School Registrations Module

A school's onboarding request and the platform-operator decision on it:

    PENDING -> APPROVED | REJECTED   (both terminal)

API Endpoints:
- POST /registrations - Submit a registration (public)
- GET /admin/registrations/pending - Review queue (platform_operator)
- GET /admin/registrations/{id} - Details (platform_operator)
- POST /admin/registrations/{id}/approve - Approve (platform_operator)
- POST /admin/registrations/{id}/reject - Reject with reason (platform_operator)
"""

from .admin_router import router as admin_router
from .router import router

__all__ = ["router", "admin_router"]
