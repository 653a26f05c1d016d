"""
Pocket Ledger - Source Package

The ledger core of a personal-finance tracker: an entity store plus the
derived computations that run over it (recurring payments, budget alerts,
statistics, savings goals).

DESIGN PRINCIPLES:
1. The snapshot in memory is the source of truth
2. Every mutation is written through before it returns
3. Validation happens before mutation, never halfway through
4. Budget overruns are advice, not errors
5. Storage and notification delivery are swappable
"""

__version__ = "1.0.0"
__author__ = "Pocket Ledger Team"
