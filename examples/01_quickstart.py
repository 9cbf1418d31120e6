#!/usr/bin/env python3
"""Example: Quickstart

Registers an identity, updates its encrypted data and reads both fields
back through the host entry point.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install identity-registry
"""
from __future__ import annotations

import json

import identity_registry
from identity_registry import InMemoryLedger, RegistryHost


def main() -> None:
    print(f"identity-registry version: {identity_registry.__version__}")

    host = RegistryHost(InMemoryLedger())
    host.init()

    # Step 1: Register an identity
    payload = {"username": "alice", "publicKey": "PK1", "data": "ENC1", "verified": ""}
    response = host.invoke("Register", [json.dumps(payload)])
    print(f"Registered: {response.payload.decode()}")

    # Step 2: Replace the encrypted data
    host.invoke("UpdateUserData", [json.dumps({"username": "alice", "data": "ENC2"})])

    # Step 3: Read the public key and the data back
    for operation in ("GetPublicKey", "GetUserData"):
        response = host.invoke(operation, [json.dumps({"username": "alice"})])
        print(f"{operation}: {response.payload.decode()}")

    # Step 4: Unknown usernames fail with NotFound
    response = host.invoke("GetUserData", [json.dumps({"username": "bob"})])
    print(f"GetUserData(bob): {response.kind} - {response.message}")

    print("\nQuickstart complete.")


if __name__ == "__main__":
    main()
