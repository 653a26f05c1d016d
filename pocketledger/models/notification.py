"""Outbound notification requests handed to the delivery collaborator."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class NotificationKind(str, Enum):
    MONTHLY_BUDGET_WARNING = "monthly-budget-warning"
    CATEGORY_LIMIT_WARNING = "category-limit-warning"
    RECURRING_PAYMENT_DUE_REMINDER = "recurring-payment-due-reminder"
    DAILY_REMINDER = "daily-reminder"


class NotificationRequest(BaseModel):
    """
    A single request to show something to the user.

    identifier is stable per logical notification (e.g. one per category
    and percent), so a delivery backend can replace rather than stack them.
    """
    request_id: UUID = Field(default_factory=uuid4)
    created_at: datetime = Field(default_factory=datetime.now)
    kind: NotificationKind
    identifier: str = Field(..., min_length=1)
    title: str
    body: str
    payload: dict[str, Any] = Field(default_factory=dict)
