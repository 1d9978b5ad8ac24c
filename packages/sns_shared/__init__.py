"""Shared cross-cutting packages for the Stellar Name Service registry."""
