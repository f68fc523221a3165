from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import ValidationError as PydanticValidationError

from fieldnotes.internal_core.contracts import Envelope, FieldReport, Profile, UpdateResult, WriteAck
from fieldnotes.internal_core.errors import StorageError

logger = logging.getLogger(__name__)

M = TypeVar("M")


def _segment(value: str) -> str:
    return quote(str(value), safe="")


class HttpServiceClient:
    """Calls the fieldnotes HTTP boundary and decodes Envelopes from any status."""

    def __init__(self, http: httpx.Client, token: Optional[str] = None) -> None:
        self._http = http
        self._token = token

    def _headers(self) -> Dict[str, str]:
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}

    def _request(
        self,
        method: str,
        path: str,
        model: Type[M],
        json: Optional[Dict[str, Any]] = None,
    ) -> Envelope[M]:
        envelope_type = Envelope[model]  # type: ignore[valid-type]
        try:
            response = self._http.request(method, path, json=json, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning("request failed method=%s path=%s: %s", method, path, exc)
            return envelope_type.fail(StorageError(f"Service unreachable: {exc}"))

        try:
            return envelope_type.model_validate(response.json())
        except (ValueError, PydanticValidationError) as exc:
            logger.warning(
                "malformed envelope method=%s path=%s status=%s: %s",
                method,
                path,
                response.status_code,
                exc,
            )
            return envelope_type.fail(
                StorageError(f"Unexpected response from service (status {response.status_code})")
            )

    def create_profile(self, profile: Profile) -> Envelope[str]:
        return self._request("POST", "/profiles", str, json=profile.model_dump(by_alias=True))

    def fetch_profile(self, email: str) -> Envelope[Profile]:
        return self._request("GET", f"/profiles/{_segment(email)}", Profile)

    def update_user(self, profile: Profile) -> Envelope[UpdateResult]:
        return self._request(
            "PATCH",
            f"/profiles/{_segment(profile.email)}",
            UpdateResult,
            json=profile.model_dump(by_alias=True),
        )

    def list_field_report(self, username: str, session_id: str) -> Envelope[FieldReport]:
        return self._request(
            "GET", f"/reports/{_segment(session_id)}/{_segment(username)}", FieldReport
        )

    def create_field_report(
        self, username: str, session_id: str, field_reports: str, time: str
    ) -> Envelope[WriteAck]:
        body = {
            "username": username,
            "sessionID": session_id,
            "fieldReports": field_reports,
            "time": time,
        }
        return self._request("POST", "/reports", WriteAck, json=body)

    def update_field_report(
        self, username: str, session_id: str, field_reports: str, time: str
    ) -> Envelope[WriteAck]:
        return self._request(
            "PATCH",
            f"/reports/{_segment(session_id)}/{_segment(username)}",
            WriteAck,
            json={"fieldReports": field_reports, "time": time},
        )

    def save_field_report(
        self, username: str, session_id: str, field_reports: str, time: str
    ) -> Envelope[WriteAck]:
        return self._request(
            "PUT",
            f"/reports/{_segment(session_id)}/{_segment(username)}",
            WriteAck,
            json={"fieldReports": field_reports, "time": time},
        )
