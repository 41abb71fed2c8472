from app.models.base import Base
from app.models.account import Account, AccountKind
from app.models.auth_session import AuthSession
from app.models.audit_log import AuditLog
from app.models.patient import Patient
from app.models.appointment import Appointment, AppointmentStatus, MeetingType
from app.models.consent import ConsentForm, PatientConsent
from app.models.message import Message, MessageTemplate, MessageTemplateKind
from app.models.availability import AvailabilitySlot
from app.models.contact_request import ContactRequest

__all__ = [
    "Base",
    "Account",
    "AccountKind",
    "AuthSession",
    "AuditLog",
    "Patient",
    "Appointment",
    "AppointmentStatus",
    "MeetingType",
    "ConsentForm",
    "PatientConsent",
    "Message",
    "MessageTemplate",
    "MessageTemplateKind",
    "AvailabilitySlot",
    "ContactRequest",
]
