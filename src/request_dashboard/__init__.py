"""Webhook relay and request list dashboard backed by a spreadsheet automation script."""

__all__ = ["config", "models", "rows", "viewmodel"]
