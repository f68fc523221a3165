"""
Profile persistence boundary.

Design intent:
- One profile document per email, created once and edited in place.
- Absent optional fields stay absent rather than becoming empty strings.
"""

from .service import ProfileService

__all__ = ["ProfileService"]
