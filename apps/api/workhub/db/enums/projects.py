"""Project pipeline enums."""

from enum import Enum


class Stage(str, Enum):
    """
    Workflow stage of a project, in canonical order.

    Funnel (executive owned):
        LEAD → ON_PROGRESS → QUOTATION_SENT → IN_REVIEW → ONBOARDED

    Delivery (specialist owned):
        ONBOARDED → SALES → ACCOUNTS → INSTALLATION → COMPLETED
    """

    LEAD = "LEAD"
    ON_PROGRESS = "ON_PROGRESS"
    QUOTATION_SENT = "QUOTATION_SENT"
    IN_REVIEW = "IN_REVIEW"
    ONBOARDED = "ONBOARDED"
    SALES = "SALES"
    ACCOUNTS = "ACCOUNTS"
    INSTALLATION = "INSTALLATION"
    COMPLETED = "COMPLETED"

    @classmethod
    def non_onboarded(cls) -> list["Stage"]:
        """Funnel stages before onboarding."""
        return [cls.LEAD, cls.ON_PROGRESS, cls.QUOTATION_SENT, cls.IN_REVIEW]

    @classmethod
    def onboarded_active(cls) -> list["Stage"]:
        """Stages after onboarding that are not yet complete."""
        return [cls.ONBOARDED, cls.SALES, cls.ACCOUNTS, cls.INSTALLATION]


class ExecutiveViewStatus(str, Enum):
    """Executive dashboard grouping, always derived from the current stage."""

    NON_ONBOARDED = "NON_ONBOARDED"
    ONBOARDED_ACTIVE = "ONBOARDED_ACTIVE"
    COMPLETED = "COMPLETED"


class Region(str, Enum):
    NORTH = "North"
    SOUTH = "South"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    COMPLETED = "COMPLETED"


class InstallationStatus(str, Enum):
    PENDING = "PENDING"
    WORK_DONE = "WORK_DONE"
    NOT_DONE = "NOT_DONE"


class ActivityType(str, Enum):
    """Activity log action types."""

    CREATED = "CREATED"
    FIELD_UPDATED = "FIELD_UPDATED"
    STAGE_CHANGED = "STAGE_CHANGED"
    PAYMENT_ADDED = "PAYMENT_ADDED"
    DELETED = "DELETED"


class MutationKind(str, Enum):
    """Stage-scoped mutations routed through the workflow entry point."""

    TRANSITION = "TRANSITION"
    SALES_UPDATE = "SALES_UPDATE"
    READY_FOR_ACCOUNTS = "READY_FOR_ACCOUNTS"
    PAYMENT = "PAYMENT"
    INSTALLATION_UPDATE = "INSTALLATION_UPDATE"
