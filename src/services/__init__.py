"""Progression engine services."""
