from __future__ import annotations

from fastapi import APIRouter

from booking_admission.api.routes import admissions, admin_audit, admin_reservations, admin_resources, admin_rules, admin_settings

api_router = APIRouter()

api_router.include_router(admissions.router, tags=["admissions"])

# Admin
api_router.include_router(admin_resources.router, prefix="/admin/resources", tags=["admin-resources"])
api_router.include_router(admin_rules.router, prefix="/admin/booking-rules", tags=["admin-rules"])
api_router.include_router(admin_reservations.router, prefix="/admin/reservations", tags=["admin-reservations"])
api_router.include_router(admin_settings.router, prefix="/admin/settings", tags=["admin-settings"])
api_router.include_router(admin_audit.router, prefix="/admin/audit-logs", tags=["admin-audit"])
