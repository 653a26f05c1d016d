"""Savings package."""

from pocketledger.savings.ledger import SavingsLedger

__all__ = ["SavingsLedger"]
