"""Utility modules for logging, money rounding, and HTTP errors."""
