from __future__ import annotations

import enum


class Role(enum.StrEnum):
    """User role, from most to least privileged."""

    DEVELOPER = "DEVELOPER"
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


class PlanType(enum.StrEnum):
    """Subscription plan of a company."""

    BASIC = "BASIC"
    STANDARD = "STANDARD"
    PREMIUM = "PREMIUM"


class TimeEntryStatus(enum.StrEnum):
    """Derived lifecycle state of a time entry."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentStatus(enum.StrEnum):
    """State of a payment from creation to recipient confirmation."""

    PENDING = "pending"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(enum.StrEnum):
    BANK_TRANSFER = "bank_transfer"
    PIX = "pix"
    CASH = "cash"
    CHECK = "check"
    OTHER = "other"


class NotificationType(enum.StrEnum):
    """Visual severity of a notification."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class RelatedType(enum.StrEnum):
    """Kind of entity a notification points at."""

    TIME_ENTRY = "timeEntry"
    PAYMENT = "payment"
    FEEDBACK = "feedback"
    USER = "user"


class FeedbackType(enum.StrEnum):
    BUG = "bug"
    FEATURE = "feature"
    SUGGESTION = "suggestion"
    OTHER = "other"


class FeedbackPriority(enum.StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
