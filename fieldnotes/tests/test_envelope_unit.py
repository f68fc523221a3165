import pytest
from pydantic import ValidationError as PydanticValidationError

from fieldnotes.internal_core.contracts import Envelope, FieldReport, WriteAck
from fieldnotes.internal_core.errors import NotFoundError, StorageError


def test_success_envelope_wire_shape() -> None:
    report = FieldReport(username="alice", session_id="s1", field_reports="hello", time="T1")

    wire = Envelope[FieldReport].ok(report).to_wire()

    assert wire == {
        "isOK": True,
        "response": {"username": "alice", "sessionID": "s1", "fieldReports": "hello", "time": "T1"},
    }


def test_failure_envelope_wire_shape() -> None:
    wire = Envelope[FieldReport].fail(NotFoundError("field report not found")).to_wire()

    assert wire == {"isOK": False, "message": "field report not found", "code": "NOT_FOUND"}


def test_failure_message_override_keeps_error_code() -> None:
    envelope = Envelope[WriteAck].fail(StorageError("disk I/O error"), "Please try again")

    assert envelope.message == "Please try again"
    assert envelope.code == "STORAGE_ERROR"


def test_envelope_rejects_both_or_neither_outcome() -> None:
    with pytest.raises(PydanticValidationError):
        Envelope[str](is_ok=True)
    with pytest.raises(PydanticValidationError):
        Envelope[str](is_ok=True, response="id", message="also failed")
    with pytest.raises(PydanticValidationError):
        Envelope[str](is_ok=False, code="STORAGE_ERROR")
    with pytest.raises(PydanticValidationError):
        Envelope[str](is_ok=False, message="failed", code="STORAGE_ERROR", response="id")


def test_envelope_parses_wire_payload() -> None:
    envelope = Envelope[WriteAck].model_validate(
        {"isOK": True, "response": {"acknowledged": True, "created": True, "insertedId": "abc"}}
    )

    assert envelope.response.inserted_id == "abc"
    assert envelope.response.created is True
