"""
Field report persistence boundary.

Design intent:
- One note per (username, sessionID), created on first save.
- Surface a missing record distinctly so callers can fall back to create.
"""

from .service import FieldReportService

__all__ = ["FieldReportService"]
