"""Insights module - maintenance hints from the latest snapshot."""

from .maintenance import MaintenanceAdvisor, MaintenanceHint

__all__ = [
    "MaintenanceAdvisor",
    "MaintenanceHint",
]
