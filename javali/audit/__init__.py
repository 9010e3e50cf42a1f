"""Audit logging package."""

from javali.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
