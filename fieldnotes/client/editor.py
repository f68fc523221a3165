from __future__ import annotations

"""
Field report editor lifecycle for one (username, sessionID).

Design intent:
- Resolve create-vs-update from what this editor already knows.
- Keep the presentation stream paused exactly while the editor is open.
- Never mutate the local report on a failed save.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from email.utils import format_datetime
from enum import Enum
from typing import Callable, Iterator, Optional, Protocol

from fieldnotes.internal_core.contracts import Envelope, FieldReport, WriteAck

from .notifications import LoggingNotifier, Notification, Notifier
from .presentation import PresentationStream, paused

logger = logging.getLogger(__name__)


class FieldReportClient(Protocol):
    def list_field_report(self, username: str, session_id: str) -> Envelope[FieldReport]: ...

    def create_field_report(
        self, username: str, session_id: str, field_reports: str, time: str
    ) -> Envelope[WriteAck]: ...

    def update_field_report(
        self, username: str, session_id: str, field_reports: str, time: str
    ) -> Envelope[WriteAck]: ...

    def save_field_report(
        self, username: str, session_id: str, field_reports: str, time: str
    ) -> Envelope[WriteAck]: ...


class EditorState(str, Enum):
    UNOPENED = "unopened"
    LOADING = "loading"
    NO_EXISTING_REPORT = "no_existing_report"
    HAS_EXISTING_REPORT = "has_existing_report"
    EDITING = "editing"
    SAVING = "saving"
    SAVED = "saved"
    SAVE_FAILED = "save_failed"


_SUBMITTABLE = {EditorState.EDITING, EditorState.SAVED, EditorState.SAVE_FAILED}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_report_time(moment: datetime) -> str:
    """RFC 1123 UTC stamp, e.g. ``Mon, 19 Oct 2026 12:00:00 GMT``."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return format_datetime(moment.astimezone(timezone.utc), usegmt=True)


class FieldReportEditor:
    def __init__(
        self,
        client: FieldReportClient,
        username: str,
        session_id: str,
        *,
        stream: Optional[PresentationStream] = None,
        notifier: Optional[Notifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
        atomic_save: bool = False,
    ) -> None:
        self._client = client
        self.username = username
        self.session_id = session_id
        self._stream = stream
        self._notifier = notifier or LoggingNotifier()
        self._clock = clock or _utc_now
        self._atomic_save = atomic_save
        self.state = EditorState.UNOPENED
        self.report: Optional[FieldReport] = None
        # None until a load or save has resolved whether a record exists.
        self._exists: Optional[bool] = None
        self.is_open = False

    @property
    def known_state(self) -> Optional[EditorState]:
        if self._exists is None:
            return None
        return EditorState.HAS_EXISTING_REPORT if self._exists else EditorState.NO_EXISTING_REPORT

    @property
    def text(self) -> str:
        return self.report.field_reports if self.report is not None else ""

    @contextmanager
    def open(self) -> Iterator["FieldReportEditor"]:
        if self.is_open:
            raise RuntimeError("Field report editor is already open")
        with paused(self._stream):
            self.is_open = True
            try:
                self._load()
                self.state = EditorState.EDITING
                yield self
            finally:
                self.is_open = False

    def _load(self) -> None:
        self.state = EditorState.LOADING
        envelope = self._client.list_field_report(self.username, self.session_id)
        if envelope.is_ok and envelope.response is not None:
            self.report = envelope.response
            self._exists = True
        elif envelope.is_not_found:
            self.report = None
            self._exists = False
        else:
            logger.warning(
                "field report load failed username=%s session=%s code=%s",
                self.username,
                self.session_id,
                envelope.code,
            )
            self._notify_error("Error Loading Note", envelope.message or "Unable to load your note")
            return
        self.state = self.known_state or EditorState.NO_EXISTING_REPORT

    def edit(self) -> None:
        if not self.is_open:
            raise RuntimeError("Field report editor is not open")
        if self.state in (EditorState.SAVED, EditorState.SAVE_FAILED):
            self.state = EditorState.EDITING

    def submit(self, text: str) -> bool:
        if not self.is_open:
            raise RuntimeError("Field report editor is not open")
        if self.state not in _SUBMITTABLE:
            raise RuntimeError(f"Cannot submit while {self.state.value}")

        self.state = EditorState.SAVING
        stamp = format_report_time(self._clock())
        envelope = self._write(text, stamp)

        if not envelope.is_ok:
            self.state = EditorState.SAVE_FAILED
            self._notify_error(
                "Error Posting Note",
                "There was an error posting your field report, please try again",
            )
            return False

        self.report = FieldReport(
            username=self.username,
            session_id=self.session_id,
            field_reports=text,
            time=stamp,
        )
        self._exists = True
        self.state = EditorState.SAVED
        self._notifier.notify(
            Notification(
                title="Successfully Saved Note",
                description="Successfully saved field report",
                status="success",
            )
        )
        return True

    def _write(self, text: str, stamp: str) -> Envelope[WriteAck]:
        args = (self.username, self.session_id, text, stamp)
        if self._atomic_save or self._exists is None:
            return self._client.save_field_report(*args)
        if not self._exists:
            return self._client.create_field_report(*args)

        envelope = self._client.update_field_report(*args)
        if envelope.is_not_found:
            logger.info(
                "field report vanished, creating username=%s session=%s",
                self.username,
                self.session_id,
            )
            return self._client.create_field_report(*args)
        return envelope

    def _notify_error(self, title: str, description: str) -> None:
        self._notifier.notify(Notification(title=title, description=description, status="error"))
