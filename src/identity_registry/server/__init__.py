"""HTTP server mode for identity-registry.

Provides a lightweight stdlib-based HTTP transport for the four registry
operations without requiring any additional web framework dependencies.
"""
from __future__ import annotations

from identity_registry.server.app import IdentityRegistryHandler, create_server, run_server

__all__ = ["IdentityRegistryHandler", "create_server", "run_server"]
