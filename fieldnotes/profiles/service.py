from __future__ import annotations

"""
Profile persistence keyed by email.

Design intent:
- Keep create and update as separate operations; the edit form already
  knows whether a profile exists because it loaded one first.
- Never let a storage fault escape; every outcome is an Envelope.
"""

import logging

from fieldnotes.internal_core.contracts import PROFILES, Envelope, Profile, UpdateResult
from fieldnotes.internal_core.errors import (
    DuplicateKeyError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from fieldnotes.store.base import DocumentStore

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def create_profile(self, profile: Profile) -> Envelope[str]:
        """Insert a new profile document and return its storage id.

        No existence check is made here; duplicates are only rejected when
        the store carries a unique index on ``email``.
        """
        try:
            doc_id = self._store.insert_one(PROFILES, profile.to_document())
        except DuplicateKeyError as exc:
            logger.warning("create_profile duplicate email=%s", profile.email)
            return Envelope[str].fail(exc, "A profile already exists for this email")
        except StorageError as exc:
            logger.warning("create_profile failed email=%s: %s", profile.email, exc.message)
            return Envelope[str].fail(exc, "Unable to create profile, please try again")

        logger.info("profile created email=%s id=%s", profile.email, doc_id)
        return Envelope[str].ok(doc_id)

    def fetch_profile(self, email: str) -> Envelope[Profile]:
        normalized = (email or "").strip()
        if not normalized:
            return Envelope[Profile].fail(ValidationError("email is required", fields=["email"]))
        try:
            document = self._store.find_one(PROFILES, {"email": normalized})
        except StorageError as exc:
            logger.warning("fetch_profile failed email=%s: %s", normalized, exc.message)
            return Envelope[Profile].fail(exc, "Unable to load profile, please try again")

        if document is None:
            logger.debug("profile not found email=%s", normalized)
            return Envelope[Profile].fail(NotFoundError("profile not found"))
        return Envelope[Profile].ok(Profile.from_document(document))

    def update_user(self, profile: Profile) -> Envelope[UpdateResult]:
        # email is the match key and is never part of the written fields.
        try:
            result = self._store.update_one(
                PROFILES, {"email": profile.email}, profile.mutable_fields()
            )
        except StorageError as exc:
            logger.warning("update_user failed email=%s: %s", profile.email, exc.message)
            return Envelope[UpdateResult].fail(
                exc, "error has occurred when updating document in database"
            )

        if result.matched_count == 0:
            logger.debug("update_user matched nothing email=%s", profile.email)
        else:
            logger.info(
                "profile updated email=%s modified=%s", profile.email, result.modified_count
            )
        return Envelope[UpdateResult].ok(result)
