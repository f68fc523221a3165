from fieldnotes.client.notifications import Notification
from fieldnotes.client.profile_form import ProfileEditor
from fieldnotes.internal_core.contracts import PROFILES, Profile
from fieldnotes.profiles.service import ProfileService
from fieldnotes.store import InMemoryDocumentStore


class RecordingNotifier:
    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)


def _editor(store: InMemoryDocumentStore, notifier: RecordingNotifier) -> ProfileEditor:
    return ProfileEditor(ProfileService(store), "alice@example.com", notifier=notifier)


def test_missing_profile_seeds_empty_form_silently() -> None:
    notifier = RecordingNotifier()
    editor = _editor(InMemoryDocumentStore(), notifier)

    assert editor.load() is None
    assert editor.form_values() == {
        "username": "",
        "firstName": "",
        "lastName": "",
        "email": "alice@example.com",
        "pronouns": "",
        "occupation": "",
        "bio": "",
    }
    assert notifier.notifications == []


def test_required_fields_are_validated_before_the_service() -> None:
    store = InMemoryDocumentStore()
    notifier = RecordingNotifier()
    editor = _editor(store, notifier)
    editor.load()

    ok = editor.submit(username="alice", first_name="  ", last_name="")

    assert ok is False
    assert editor.last_error is not None
    assert editor.last_error.code == "VALIDATION_ERROR"
    assert editor.last_error.fields == ["firstName", "lastName"]
    assert notifier.notifications[0].title == "Incomplete information."
    assert store.count(PROFILES, {}) == 0


def test_blank_editor_email_fails_without_raising() -> None:
    store = InMemoryDocumentStore()
    notifier = RecordingNotifier()
    editor = ProfileEditor(ProfileService(store), "", notifier=notifier)

    ok = editor.submit(username="alice", first_name="Alice", last_name="Liddell")

    assert ok is False
    assert editor.last_error.code == "VALIDATION_ERROR"
    assert editor.last_error.fields == ["email"]
    assert notifier.notifications[-1].status == "error"
    assert store.count(PROFILES, {}) == 0


def test_first_submit_creates_and_later_submits_update() -> None:
    store = InMemoryDocumentStore()
    notifier = RecordingNotifier()
    editor = _editor(store, notifier)
    editor.load()

    assert editor.submit(username="alice", first_name="Alice", last_name="Liddell", pronouns="")
    assert editor.submit(username="alice", first_name="Alice", last_name="Liddell", bio="Botanist")

    docs = store.find(PROFILES, {"email": "alice@example.com"})
    assert len(docs) == 1
    assert docs[0]["bio"] == "Botanist"
    assert docs[0]["pronouns"] is None
    assert [item.status for item in notifier.notifications] == ["success", "success"]


def test_clearing_an_existing_value_stores_empty_string() -> None:
    store = InMemoryDocumentStore()
    service = ProfileService(store)
    service.create_profile(
        Profile(
            email="alice@example.com",
            username="alice",
            first_name="Alice",
            last_name="Liddell",
            bio="Botanist",
        )
    )
    editor = ProfileEditor(service, "alice@example.com", notifier=RecordingNotifier())
    editor.load()
    assert editor.form_values()["bio"] == "Botanist"

    assert editor.submit(username="alice", first_name="Alice", last_name="Liddell", bio="", occupation="")

    stored = service.fetch_profile("alice@example.com").response
    assert stored.bio == ""
    assert stored.occupation is None


def test_update_against_vanished_profile_reports_not_found() -> None:
    store = InMemoryDocumentStore()
    notifier = RecordingNotifier()
    editor = _editor(store, notifier)
    editor.profile = Profile(
        email="alice@example.com", username="alice", first_name="Alice", last_name="Liddell"
    )

    assert editor.submit(username="alice", first_name="Alice", last_name="Liddell") is False
    assert editor.last_error.code == "NOT_FOUND"
    assert editor.profile is None

    assert editor.submit(username="alice", first_name="Alice", last_name="Liddell") is True
    assert store.count(PROFILES, {}) == 1
