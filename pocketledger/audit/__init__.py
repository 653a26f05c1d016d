"""Audit logging package."""

from pocketledger.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
