"""
Database module for remediation audit logging.

Exports:
    StepAuditLog: Sync context manager recording sessions and turns
"""

from remedy_core.db.audit_log import StepAuditLog

__all__ = ["StepAuditLog"]
