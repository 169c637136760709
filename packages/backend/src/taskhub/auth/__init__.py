"""Authentication against the hosted identity provider.

Identities are owned by an external GoTrue-compatible auth service.
This package wraps its HTTP API (provider.py), exposes it to routes
as FastAPI dependencies (dependencies.py), and derives per-user
permissions from the local profile (permissions.py).
"""
