import httpx
from fastapi.testclient import TestClient

from fieldnotes.api.main import create_app
from fieldnotes.client.editor import FieldReportEditor
from fieldnotes.client.http import HttpServiceClient
from fieldnotes.client.profile_form import ProfileEditor
from fieldnotes.internal_core.config import FieldNotesConfig
from fieldnotes.internal_core.contracts import Profile
from fieldnotes.store import InMemoryDocumentStore


def _http_client() -> HttpServiceClient:
    app = create_app(config=FieldNotesConfig(), store=InMemoryDocumentStore())
    return HttpServiceClient(TestClient(app), token="test-token")


def test_profile_operations_over_http() -> None:
    client = _http_client()
    profile = Profile(
        email="alice@example.com",
        username="alice",
        first_name="Alice",
        last_name="Liddell",
        occupation="",
    )

    created = client.create_profile(profile)
    fetched = client.fetch_profile("alice@example.com")
    updated = client.update_user(profile.model_copy(update={"bio": "Botanist"}))
    missing = client.fetch_profile("nobody@example.com")

    assert created.is_ok and isinstance(created.response, str)
    assert fetched.response == profile
    assert fetched.response.occupation == ""
    assert fetched.response.pronouns is None
    assert updated.response.matched_count == 1
    assert missing.is_not_found


def test_field_report_editor_over_http() -> None:
    client = _http_client()
    editor = FieldReportEditor(client, "alice@example.com", "room-7")

    with editor.open():
        assert editor.submit("hello")
    with editor.open():
        assert editor.text == "hello"
        assert editor.submit("hello world")

    listed = client.list_field_report("alice@example.com", "room-7")
    assert listed.response.field_reports == "hello world"
    assert client.update_field_report("bob", "room-7", "x", "T1").is_not_found
    assert client.save_field_report("bob", "room-7", "x", "T1").response.created is True


def test_profile_editor_over_http() -> None:
    client = _http_client()
    editor = ProfileEditor(client, "alice@example.com")

    assert editor.load() is None
    assert editor.submit(username="alice", first_name="Alice", last_name="Liddell")
    assert ProfileEditor(client, "alice@example.com").load().username == "alice"


def test_transport_failure_becomes_storage_error_envelope() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = HttpServiceClient(httpx.Client(transport=httpx.MockTransport(refuse), base_url="http://fieldnotes"))

    envelope = client.list_field_report("alice", "s1")

    assert not envelope.is_ok
    assert envelope.code == "STORAGE_ERROR"


def test_non_envelope_body_becomes_storage_error_envelope() -> None:
    def gateway(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>bad gateway</html>")

    client = HttpServiceClient(httpx.Client(transport=httpx.MockTransport(gateway), base_url="http://fieldnotes"))

    envelope = client.fetch_profile("alice@example.com")

    assert envelope.code == "STORAGE_ERROR"
    assert "502" in envelope.message
