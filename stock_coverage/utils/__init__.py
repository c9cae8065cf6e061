"""Utility helpers: logging setup and error formatting."""
