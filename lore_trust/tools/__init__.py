"""Operational entry points (batch scheduler)."""
