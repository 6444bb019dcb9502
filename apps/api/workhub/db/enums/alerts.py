"""Operational alert enums."""

from enum import Enum


class AlertType(str, Enum):
    STAGE_INACTIVITY = "STAGE_INACTIVITY"
    PAYMENT_DELAY = "PAYMENT_DELAY"
    INSTALLATION_DELAY = "INSTALLATION_DELAY"
    DUPLICATE_LEAD = "DUPLICATE_LEAD"
    UNAUTHORIZED_EDIT = "UNAUTHORIZED_EDIT"


class AlertSeverity(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"
