# Import all models so that SQLAlchemy registers them for metadata.create_all
from booking_admission.models.resource import Resource
from booking_admission.models.booking_rule import BookingRule
from booking_admission.models.reservation import Reservation
from booking_admission.models.settings import AdmissionSettings
from booking_admission.models.audit_log import AuditLog

__all__ = [
    "Resource",
    "BookingRule",
    "Reservation",
    "AdmissionSettings",
    "AuditLog",
]
