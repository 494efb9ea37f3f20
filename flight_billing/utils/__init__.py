"""Shared utilities for the flight billing engine."""
