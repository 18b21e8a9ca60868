from autoresponder.models.response import GeneratedResponse, ResponseStatus
from autoresponder.models.audit import AuditLogEntry, AuditAction, ERROR_ACTIONS
from autoresponder.models.feedback import FeedbackEntry, FeedbackType

__all__ = [
    "GeneratedResponse",
    "ResponseStatus",
    "AuditLogEntry",
    "AuditAction",
    "ERROR_ACTIONS",
    "FeedbackEntry",
    "FeedbackType",
]
