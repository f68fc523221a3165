from __future__ import annotations

"""
Session-scoped field reports: one free-text note per (username, sessionID).

Design intent:
- Absence is an expected outcome on a first visit, reported as NOT_FOUND.
- create/update mirror the client's fetch-then-branch flow and do not
  re-check each other; save is the atomic insert-or-update alternative.
- Writes are last-write-wins with no version token.
"""

import logging
from typing import Any, Dict

from pydantic import ValidationError as PydanticValidationError

from fieldnotes.internal_core.contracts import FIELD_REPORTS, Envelope, FieldReport, WriteAck
from fieldnotes.internal_core.errors import (
    DuplicateKeyError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from fieldnotes.store.base import DocumentStore

logger = logging.getLogger(__name__)


def _report_key(username: str, session_id: str) -> Dict[str, Any]:
    return {"username": username, "sessionID": session_id}


def _build_report(username: str, session_id: str, field_reports: str, time: str) -> FieldReport:
    try:
        return FieldReport(
            username=username,
            session_id=session_id,
            field_reports=field_reports,
            time=time,
        )
    except PydanticValidationError as exc:
        fields = [str(err["loc"][0]) for err in exc.errors() if err.get("loc")]
        raise ValidationError(
            f"Invalid field report: {', '.join(sorted(set(fields))) or 'payload'}",
            fields=fields,
        ) from exc


class FieldReportService:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def list_field_report(self, username: str, session_id: str) -> Envelope[FieldReport]:
        key = _report_key(username, session_id)
        try:
            document = self._store.find_one(FIELD_REPORTS, key)
        except StorageError as exc:
            logger.warning(
                "list_field_report failed username=%s session=%s: %s",
                username,
                session_id,
                exc.message,
            )
            return Envelope[FieldReport].fail(exc, "Unable to load field report, please try again")

        if document is None:
            logger.debug("field report not found username=%s session=%s", username, session_id)
            return Envelope[FieldReport].fail(NotFoundError("field report not found"))
        return Envelope[FieldReport].ok(FieldReport.from_document(document))

    def create_field_report(
        self, username: str, session_id: str, field_reports: str, time: str
    ) -> Envelope[WriteAck]:
        try:
            report = _build_report(username, session_id, field_reports, time)
            doc_id = self._store.insert_one(FIELD_REPORTS, report.to_document())
        except ValidationError as exc:
            return Envelope[WriteAck].fail(exc)
        except DuplicateKeyError as exc:
            logger.warning(
                "create_field_report duplicate username=%s session=%s", username, session_id
            )
            return Envelope[WriteAck].fail(
                exc, "A field report already exists for this session"
            )
        except StorageError as exc:
            logger.warning(
                "create_field_report failed username=%s session=%s: %s",
                username,
                session_id,
                exc.message,
            )
            return Envelope[WriteAck].fail(
                exc, "There was an error posting your field report, please try again"
            )

        logger.info(
            "field report created username=%s session=%s id=%s", username, session_id, doc_id
        )
        return Envelope[WriteAck].ok(WriteAck(inserted_id=doc_id, created=True))

    def update_field_report(
        self, username: str, session_id: str, field_reports: str, time: str
    ) -> Envelope[WriteAck]:
        try:
            report = _build_report(username, session_id, field_reports, time)
            result = self._store.update_one(
                FIELD_REPORTS,
                _report_key(report.username, report.session_id),
                {"fieldReports": report.field_reports, "time": report.time},
            )
        except ValidationError as exc:
            return Envelope[WriteAck].fail(exc)
        except StorageError as exc:
            logger.warning(
                "update_field_report failed username=%s session=%s: %s",
                username,
                session_id,
                exc.message,
            )
            return Envelope[WriteAck].fail(
                exc, "There was an error posting your field report, please try again"
            )

        if result.matched_count == 0:
            logger.debug(
                "update_field_report matched nothing username=%s session=%s", username, session_id
            )
            return Envelope[WriteAck].fail(
                NotFoundError("No field report exists for this session yet")
            )

        logger.info(
            "field report updated username=%s session=%s modified=%s",
            username,
            session_id,
            result.modified_count,
        )
        return Envelope[WriteAck].ok(WriteAck(created=False))

    def save_field_report(
        self, username: str, session_id: str, field_reports: str, time: str
    ) -> Envelope[WriteAck]:
        """Insert the report if the composite key is absent, otherwise update it, atomically."""
        try:
            report = _build_report(username, session_id, field_reports, time)
            result = self._store.upsert_one(
                FIELD_REPORTS,
                _report_key(report.username, report.session_id),
                {"fieldReports": report.field_reports, "time": report.time},
            )
        except ValidationError as exc:
            return Envelope[WriteAck].fail(exc)
        except StorageError as exc:
            logger.warning(
                "save_field_report failed username=%s session=%s: %s",
                username,
                session_id,
                exc.message,
            )
            return Envelope[WriteAck].fail(
                exc, "There was an error posting your field report, please try again"
            )

        created = result.upserted_id is not None
        logger.info(
            "field report saved username=%s session=%s created=%s", username, session_id, created
        )
        return Envelope[WriteAck].ok(WriteAck(inserted_id=result.upserted_id, created=created))
