from __future__ import annotations

from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import ErrorCode, ServiceError

PROFILES = "profiles"
FIELD_REPORTS = "field_reports"

PROFILE_MUTABLE_FIELDS = ("username", "firstName", "lastName", "pronouns", "occupation", "bio")

T = TypeVar("T")


class Profile(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    email: str = Field(min_length=1, max_length=320)
    username: str
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    pronouns: Optional[str] = None
    occupation: Optional[str] = None
    bio: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        # Stored and looked up stripped, so fetch matches what create wrote.
        value = value.strip()
        if not value:
            raise ValueError("email must not be blank")
        return value

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    def mutable_fields(self) -> Dict[str, Any]:
        document = self.to_document()
        return {name: document[name] for name in PROFILE_MUTABLE_FIELDS}

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Profile":
        return cls.model_validate({k: v for k, v in document.items() if k != "_id"})


class FieldReport(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    username: str = Field(min_length=1)
    session_id: str = Field(alias="sessionID", min_length=1)
    field_reports: str = Field(alias="fieldReports")
    time: str

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "FieldReport":
        return cls.model_validate({k: v for k, v in document.items() if k != "_id"})


class UpdateResult(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    acknowledged: bool = True
    matched_count: int = Field(default=0, ge=0, alias="matchedCount")
    modified_count: int = Field(default=0, ge=0, alias="modifiedCount")


class UpsertResult(UpdateResult):
    upserted_id: Optional[str] = Field(default=None, alias="upsertedId")


class WriteAck(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    acknowledged: bool = True
    inserted_id: Optional[str] = Field(default=None, alias="insertedId")
    created: Optional[bool] = None


class Envelope(BaseModel, Generic[T]):
    """Uniform success/failure wrapper returned by every service operation."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    is_ok: bool = Field(alias="isOK")
    message: Optional[str] = None
    code: Optional[ErrorCode] = None
    response: Optional[T] = None

    @model_validator(mode="after")
    def _validate_outcome(self) -> "Envelope[T]":
        if self.is_ok:
            if self.response is None:
                raise ValueError("Successful envelope must carry a response")
            if self.message is not None or self.code is not None:
                raise ValueError("Successful envelope must not carry message or code")
        else:
            if not self.message or self.code is None:
                raise ValueError("Failed envelope must carry a message and a code")
            if self.response is not None:
                raise ValueError("Failed envelope must not carry a response")
        return self

    @classmethod
    def ok(cls, value: Any) -> "Envelope[T]":
        return cls(is_ok=True, response=value)

    @classmethod
    def fail(cls, error: ServiceError, message: Optional[str] = None) -> "Envelope[T]":
        return cls(is_ok=False, message=message or error.message or "Request failed", code=error.code)

    @property
    def is_not_found(self) -> bool:
        return not self.is_ok and self.code == "NOT_FOUND"

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
