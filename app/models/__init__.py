from sqlmodel import SQLModel

from app.models.base import TimestampMixin, UUIDBase
from app.models.company import Company
from app.models.enums import (
    FeedbackPriority,
    FeedbackType,
    NotificationType,
    PaymentMethod,
    PaymentStatus,
    PlanType,
    RelatedType,
    Role,
    TimeEntryStatus,
)
from app.models.feedback import Feedback
from app.models.notification import Notification
from app.models.payment import Payment, PaymentTimeEntry
from app.models.time_entry import TimeEntry
from app.models.user import User

__all__ = [
    "Company",
    "Feedback",
    "FeedbackPriority",
    "FeedbackType",
    "Notification",
    "NotificationType",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "PaymentTimeEntry",
    "PlanType",
    "RelatedType",
    "Role",
    "SQLModel",
    "TimeEntry",
    "TimeEntryStatus",
    "TimestampMixin",
    "UUIDBase",
    "User",
]
