"""Audit logging package."""

from trackit.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
