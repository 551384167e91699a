"""Logging utilities for CLAUSAL."""
