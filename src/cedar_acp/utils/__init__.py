"""Shared utilities (file helpers, logging setup)."""
