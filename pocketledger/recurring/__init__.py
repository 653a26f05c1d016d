"""Recurring payments package."""

from pocketledger.recurring.materializer import RecurringMaterializer

__all__ = ["RecurringMaterializer"]
