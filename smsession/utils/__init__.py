"""Naming and archive utilities."""
