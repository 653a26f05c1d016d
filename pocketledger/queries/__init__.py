"""Aggregation package."""

from pocketledger.queries.aggregator import Aggregator, start_of_month

__all__ = ["Aggregator", "start_of_month"]
