"""Budget evaluation package."""

from pocketledger.budget.evaluator import CATEGORY_WARNING_FLOOR, BudgetEvaluator

__all__ = ["CATEGORY_WARNING_FLOOR", "BudgetEvaluator"]
