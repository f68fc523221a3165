from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol

from pydantic import ValidationError as PydanticValidationError

from fieldnotes.internal_core.contracts import Envelope, Profile, UpdateResult
from fieldnotes.internal_core.errors import NotFoundError, ServiceError, ValidationError

from .notifications import LoggingNotifier, Notification, Notifier

logger = logging.getLogger(__name__)

_REQUIRED_LABELS = {
    "firstName": "first name",
    "lastName": "last name",
    "username": "username",
}


class ProfileClient(Protocol):
    def create_profile(self, profile: Profile) -> Envelope[str]: ...

    def fetch_profile(self, email: str) -> Envelope[Profile]: ...

    def update_user(self, profile: Profile) -> Envelope[UpdateResult]: ...


def _optional(value: Optional[str], previous: Optional[str]) -> Optional[str]:
    # Blank form field over an absent value stays absent.
    if value is None or (value == "" and previous is None):
        return None
    return value


class ProfileEditor:
    def __init__(
        self, client: ProfileClient, email: str, notifier: Optional[Notifier] = None
    ) -> None:
        self._client = client
        self.email = email
        self._notifier = notifier or LoggingNotifier()
        self.profile: Optional[Profile] = None
        self.last_error: Optional[ServiceError] = None

    def load(self) -> Optional[Profile]:
        envelope = self._client.fetch_profile(self.email)
        if envelope.is_ok:
            self.profile = envelope.response
        elif not envelope.is_not_found:
            self._fail(ServiceError(envelope.message or "Unable to load profile", code=envelope.code))
        return self.profile

    def form_values(self) -> Dict[str, str]:
        values = self.profile.model_dump(by_alias=True) if self.profile is not None else {}
        fields = ("username", "firstName", "lastName", "email", "pronouns", "occupation", "bio")
        form = {name: values.get(name) or "" for name in fields}
        form["email"] = self.email
        return form

    def submit(
        self,
        *,
        username: str,
        first_name: str,
        last_name: str,
        pronouns: Optional[str] = None,
        occupation: Optional[str] = None,
        bio: Optional[str] = None,
    ) -> bool:
        supplied = {"firstName": first_name, "lastName": last_name, "username": username}
        missing = [name for name, value in supplied.items() if not (value or "").strip()]
        if missing:
            self.last_error = ValidationError(
                "Missing required fields: " + ", ".join(_REQUIRED_LABELS[name] for name in missing),
                fields=missing,
            )
            self._notifier.notify(
                Notification(
                    title="Incomplete information.",
                    description="Please fill in the required fields.",
                    status="error",
                )
            )
            return False

        previous = self.profile
        try:
            candidate = Profile(
                email=self.email,
                username=username,
                first_name=first_name,
                last_name=last_name,
                pronouns=_optional(pronouns, previous.pronouns if previous else None),
                occupation=_optional(occupation, previous.occupation if previous else None),
                bio=_optional(bio, previous.bio if previous else None),
            )
        except PydanticValidationError as exc:
            fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
            self._fail(ValidationError(f"Invalid profile: {', '.join(fields)}", fields=fields))
            return False

        if previous is None:
            envelope = self._client.create_profile(candidate)
        else:
            envelope = self._client.update_user(candidate)

        if not envelope.is_ok:
            self._fail(ServiceError(envelope.message or "Unable to save profile", code=envelope.code))
            return False
        if isinstance(envelope.response, UpdateResult) and envelope.response.matched_count == 0:
            # Loaded profile no longer exists; the next submit creates it.
            self.profile = None
            self._fail(NotFoundError("profile not found, please submit again to recreate it"))
            return False

        self.profile = candidate
        self.last_error = None
        self._notifier.notify(
            Notification(
                title="Account updated.",
                description="We've updated your account for you.",
                status="success",
            )
        )
        return True

    def _fail(self, error: ServiceError) -> None:
        self.last_error = error
        logger.warning("profile editor failure email=%s code=%s", self.email, error.code)
        self._notifier.notify(
            Notification(
                title="Something went wrong, please try again.",
                description=error.message,
                status="error",
            )
        )
