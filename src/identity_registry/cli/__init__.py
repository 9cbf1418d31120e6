"""Command line interface for identity-registry."""
