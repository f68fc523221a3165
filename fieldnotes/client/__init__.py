"""
Client-side orchestration for field reports and profiles.

Design intent:
- Decide fetch/create/update from locally known state, never from the UI.
- Turn every failure Envelope into a user-visible notification.
- Keep the paused presentation stream scoped to the open editor.
"""

from .editor import EditorState, FieldReportEditor
from .http import HttpServiceClient
from .notifications import LoggingNotifier, Notification, Notifier
from .presentation import PresentationStream, paused
from .profile_form import ProfileEditor

__all__ = [
    "EditorState",
    "FieldReportEditor",
    "HttpServiceClient",
    "LoggingNotifier",
    "Notification",
    "Notifier",
    "PresentationStream",
    "ProfileEditor",
    "paused",
]
