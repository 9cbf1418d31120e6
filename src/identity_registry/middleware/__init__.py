"""Middleware for the identity registry: the JSONL audit trail."""
from __future__ import annotations

from identity_registry.middleware.audit import AuditEvent, RegistryAuditLogger

__all__ = ["AuditEvent", "RegistryAuditLogger"]
