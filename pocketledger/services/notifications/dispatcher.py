"""
Notification Dispatcher

DESIGN DECISION: Notifications are fire-and-forget.
Budget evaluation and recurring materialization request a notification
and move on. A delivery failure is retried a few times, then logged -
it is never raised into the caller and never changes a computed result.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from tenacity import Retrying, stop_after_attempt, wait_exponential

from pocketledger.audit import AuditLogger
from pocketledger.config import DailyReminderSettings, NotificationSettings, get_settings
from pocketledger.models.audit import AuditEventBuilder
from pocketledger.models.entities import ExpenseCategory, RecurringPayment
from pocketledger.models.notification import NotificationKind, NotificationRequest
from pocketledger.services.notifications.interface import NotificationSenderInterface


def format_money(amount: Decimal, currency_code: str = "USD") -> str:
    if currency_code == "USD":
        return f"${amount:,.2f}"
    return f"{amount:,.2f} {currency_code}"


class NotificationBuilder:
    """
    Builds requests for each notification kind.

    Identifiers are stable so a backend can replace a pending
    notification instead of stacking duplicates.
    """

    @staticmethod
    def monthly_budget_warning(
        ratio: float,
        limit: Decimal,
        spent: Decimal,
        currency_code: str = "USD",
    ) -> NotificationRequest:
        percent = int(ratio * 100)
        return NotificationRequest(
            kind=NotificationKind.MONTHLY_BUDGET_WARNING,
            identifier=f"budget-warning-{percent}",
            title="Budget Alert",
            body=(
                f"You've used {percent}% of your monthly budget "
                f"({format_money(spent, currency_code)} of {format_money(limit, currency_code)})"
            ),
            payload={"ratio": ratio, "limit": str(limit), "spent": str(spent)},
        )

    @staticmethod
    def category_limit_warning(
        category: ExpenseCategory,
        ratio: float,
        limit: Decimal,
        spent: Decimal,
        currency_code: str = "USD",
    ) -> NotificationRequest:
        percent = int(ratio * 100)
        name = category.display_name
        return NotificationRequest(
            kind=NotificationKind.CATEGORY_LIMIT_WARNING,
            identifier=f"category-limit-{category.value}-{percent}",
            title=f"{name} Budget Alert",
            body=(
                f"You've used {percent}% of your {name} limit "
                f"({format_money(spent, currency_code)} of {format_money(limit, currency_code)})"
            ),
            payload={
                "category": category.value,
                "ratio": ratio,
                "limit": str(limit),
                "spent": str(spent),
            },
        )

    @staticmethod
    def recurring_payment_due(
        payment: RecurringPayment,
        days_before: int,
        currency_code: str = "USD",
    ) -> NotificationRequest:
        if days_before == 0:
            when = "today"
        elif days_before == 1:
            when = "tomorrow"
        else:
            when = f"in {days_before} days"
        return NotificationRequest(
            kind=NotificationKind.RECURRING_PAYMENT_DUE_REMINDER,
            identifier=f"recurring-{payment.id}",
            title="Upcoming Payment",
            body=f"{payment.name} ({format_money(payment.amount, currency_code)}) is due {when}",
            payload={
                "payment_id": str(payment.id),
                "amount": str(payment.amount),
                "due": payment.next_occurrence.isoformat(),
            },
        )

    @staticmethod
    def daily_reminder(hour: int, minute: int, text: str) -> NotificationRequest:
        return NotificationRequest(
            kind=NotificationKind.DAILY_REMINDER,
            identifier="daily-reminder",
            title="Track Your Expenses",
            body=text,
            payload={"hour": hour, "minute": minute, "repeats": True},
        )


class NotificationDispatcher:
    """
    Hands requests to a sender with bounded retries.

    notify() returns whether delivery succeeded; callers are free to ignore it.
    """

    def __init__(
        self,
        sender: NotificationSenderInterface,
        settings: Optional[NotificationSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._sender = sender
        self._settings = settings or get_settings().notifications
        self._audit_logger = audit_logger or AuditLogger(max_history=0)

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self._settings.max_attempts),
            wait=wait_exponential(
                multiplier=self._settings.backoff_seconds,
                max=max(self._settings.backoff_seconds * 8, 0.0),
            ),
            reraise=True,
        )

    def notify(self, request: NotificationRequest) -> bool:
        """Deliver a request. Never raises."""
        try:
            for attempt in self._retrying():
                with attempt:
                    self._sender.send(request)
        except Exception as e:
            self._audit_logger.log(
                AuditEventBuilder.notification_failed(
                    request.kind.value, request.identifier, str(e)
                )
            )
            return False

        self._audit_logger.log(
            AuditEventBuilder.notification_sent(request.kind.value, request.identifier)
        )
        return True

    def schedule_daily_reminder(
        self,
        settings: Optional[DailyReminderSettings] = None,
    ) -> Optional[NotificationRequest]:
        """
        Request the repeating daily reminder if it's enabled.

        Returns the request that was handed off, or None when disabled.
        """
        settings = settings or get_settings().daily_reminder
        if not settings.enabled:
            return None
        request = NotificationBuilder.daily_reminder(
            settings.hour, settings.minute, settings.text
        )
        self.notify(request)
        return request


def next_daily_reminder_at(
    settings: DailyReminderSettings,
    now: Optional[datetime] = None,
) -> datetime:
    """When the daily reminder fires next (today if still ahead, else tomorrow)."""
    now = now or datetime.now()
    candidate = now.replace(hour=settings.hour, minute=settings.minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate
