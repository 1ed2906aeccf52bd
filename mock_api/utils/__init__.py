"""Shared helpers for the mock API engine."""
