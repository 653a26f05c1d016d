"""
Budget Evaluator

DESIGN DECISION: Budget overruns are ADVISORY.
Evaluation turns current-month spend plus the budget into a list of
BudgetWarning values. It never blocks a mutation, never raises for an
overrun, and stores nothing - running it twice on the same input gives
the same warnings.

Two independent rules:
1. Monthly: only when alerts are enabled and a monthly limit > 0 is set,
   warn at spent / limit >= the configured threshold.
2. Category: regardless of the alert flag, warn for each category with a
   limit > 0 at spent / limit >= CATEGORY_WARNING_FLOOR.
"""

from decimal import Decimal
from typing import Optional

from pocketledger.audit import AuditLogger
from pocketledger.config import BudgetAlertSettings, get_settings
from pocketledger.models.audit import AuditEventBuilder
from pocketledger.models.entities import ZERO, Budget, ExpenseCategory
from pocketledger.models.reports import BudgetWarning, MonthlySpend
from pocketledger.services.notifications import NotificationBuilder, NotificationDispatcher


# Category warnings use this fixed floor, not the configurable threshold
CATEGORY_WARNING_FLOOR = 0.75


def _ratio(spent: Decimal, limit: Decimal) -> float:
    return float(spent / limit)


def _checked_threshold(threshold: float) -> float:
    """Apply the settings range to a per-call override."""
    return BudgetAlertSettings(threshold=threshold).threshold


class BudgetEvaluator:
    """
    Evaluates spend against a budget and requests one notification per warning.
    """

    def __init__(
        self,
        dispatcher: Optional[NotificationDispatcher] = None,
        alert_settings: Optional[BudgetAlertSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        currency_code: Optional[str] = None,
    ):
        self._dispatcher = dispatcher
        self._alert_settings = alert_settings or get_settings().budget_alerts
        self._audit_logger = audit_logger or AuditLogger()
        self._currency_code = currency_code or get_settings().app.currency_code

    def evaluate(
        self,
        spend: MonthlySpend,
        budget: Optional[Budget],
        threshold: Optional[float] = None,
        alerts_enabled: Optional[bool] = None,
    ) -> list[BudgetWarning]:
        """
        Compute warnings for the current month.

        Args:
            spend: Month-to-date total and per-category spend
            budget: The budget, or None when none is set
            threshold: Overrides the configured monthly threshold
            alerts_enabled: Overrides the configured master flag

        Raises:
            ValueError: If threshold is outside 0.5 to 1.0

        Returns:
            The monthly warning (if any) followed by category warnings
            in category declaration order
        """
        warnings = self.compute_warnings(spend, budget, threshold, alerts_enabled)
        for warning in warnings:
            self._audit_logger.log(AuditEventBuilder.budget_warning(
                warning.category.value if warning.category else None,
                warning.ratio,
                warning.spent,
                warning.limit,
            ))
            self._notify(warning)
        return warnings

    def compute_warnings(
        self,
        spend: MonthlySpend,
        budget: Optional[Budget],
        threshold: Optional[float] = None,
        alerts_enabled: Optional[bool] = None,
    ) -> list[BudgetWarning]:
        """The pure part of evaluate(): no logging, no notifications."""
        if threshold is None:
            threshold = self._alert_settings.threshold
        else:
            threshold = _checked_threshold(threshold)
        if alerts_enabled is None:
            alerts_enabled = self._alert_settings.enabled

        if budget is None:
            return []

        warnings = []

        monthly_limit = budget.monthly_limit
        if alerts_enabled and monthly_limit is not None and monthly_limit > 0:
            ratio = _ratio(spend.total, monthly_limit)
            if ratio >= threshold:
                warnings.append(BudgetWarning(
                    ratio=ratio,
                    spent=spend.total,
                    limit=monthly_limit,
                ))

        for category in ExpenseCategory:
            limit = budget.limit_for(category)
            if limit is None or limit <= 0:
                continue
            spent = spend.for_category(category)
            ratio = _ratio(spent, limit)
            if ratio >= CATEGORY_WARNING_FLOOR:
                warnings.append(BudgetWarning(
                    category=category,
                    ratio=ratio,
                    spent=spent,
                    limit=limit,
                ))

        return warnings

    def _notify(self, warning: BudgetWarning) -> None:
        if self._dispatcher is None:
            return
        if warning.is_monthly:
            request = NotificationBuilder.monthly_budget_warning(
                warning.ratio, warning.limit, warning.spent, self._currency_code
            )
        else:
            request = NotificationBuilder.category_limit_warning(
                warning.category, warning.ratio, warning.limit, warning.spent,
                self._currency_code,
            )
        # notify() never raises
        self._dispatcher.notify(request)

    # =========================================================================
    # Progress helpers
    # =========================================================================

    @staticmethod
    def monthly_progress(spend: MonthlySpend, budget: Optional[Budget]) -> float:
        """min(spent / limit, 1.0); 0 when no monthly limit is configured."""
        if budget is None or budget.monthly_limit is None or budget.monthly_limit <= 0:
            return 0.0
        return min(_ratio(spend.total, budget.monthly_limit), 1.0)

    @staticmethod
    def remaining(spend: MonthlySpend, budget: Optional[Budget]) -> Decimal:
        """max(limit - spent, 0); 0 when no monthly limit is configured."""
        if budget is None or budget.monthly_limit is None or budget.monthly_limit <= 0:
            return ZERO
        return max(budget.monthly_limit - spend.total, ZERO)

    @staticmethod
    def category_progress(
        spend: MonthlySpend,
        budget: Optional[Budget],
        category: ExpenseCategory,
    ) -> float:
        if budget is None:
            return 0.0
        limit = budget.limit_for(category)
        if limit is None or limit <= 0:
            return 0.0
        return min(_ratio(spend.for_category(category), limit), 1.0)
