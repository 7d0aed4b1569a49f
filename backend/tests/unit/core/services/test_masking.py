import uuid
from datetime import datetime, timezone

import pytest

from coachnotes.core.models import CoachNote, NoteAuditEntry, NoteShare
from coachnotes.core.schemas.actor import UserRole
from coachnotes.core.services.masking import mask_for_viewer

OWNER = uuid.uuid4()
VIEWER = uuid.uuid4()
PLACEHOLDER = "[REDACTED]"


@pytest.fixture
def note():
    n = CoachNote(
        id=uuid.uuid4(),
        coach_id=OWNER,
        session_id=uuid.uuid4(),
        title="Session 3",
        body="ciphertext",
        tags=["progress"],
        is_encrypted=True,
        access_level="shared",
        allow_sharing=True,
        searchable_content="digest1 digest2",
        audio_file_id="audio-42",
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        updated_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        access_count=3,
    )
    n.shares.append(NoteShare(user_id=VIEWER, shared_by_user_id=OWNER))
    return n


@pytest.fixture
def entries(note):
    return [
        NoteAuditEntry(
            note_id=note.id,
            action="viewed",
            actor_id=VIEWER,
            actor_role="supervisor",
            timestamp=datetime(2025, 1, 2, tzinfo=timezone.utc),
            ip_address="10.0.0.9",
            user_agent="browser",
            details={"via": "session_list"},
        )
    ]


def test_owner_sees_everything(note, entries):
    view = mask_for_viewer(note, "plain body", OWNER, UserRole.COACH, entries, PLACEHOLDER)

    assert view.body == "plain body"
    assert view.searchable_content == "digest1 digest2"
    assert view.audio_file_id == "audio-42"
    assert view.is_owner and view.can_edit and not view.is_masked
    assert view.audit_trail[0].ip_address == "10.0.0.9"
    assert view.audit_trail[0].actor_id == VIEWER


def test_admin_sees_everything(note):
    view = mask_for_viewer(note, "plain body", uuid.uuid4(), UserRole.ADMIN, (), PLACEHOLDER)
    assert view.body == "plain body"
    assert view.is_owner is False
    assert view.can_edit is True


def test_shared_viewer_is_masked(note, entries):
    view = mask_for_viewer(note, "", VIEWER, UserRole.SUPERVISOR, entries, PLACEHOLDER)

    assert view.body == PLACEHOLDER
    assert view.searchable_content == PLACEHOLDER
    assert view.audio_file_id == PLACEHOLDER
    assert view.is_masked and not view.can_edit and not view.is_owner
    # metadata stays visible
    assert view.title == "Session 3"
    assert view.tags == ["progress"]
    assert view.shared_with == [VIEWER]
    assert view.access_count == 3

    entry = view.audit_trail[0]
    assert entry.action == "viewed"
    assert entry.actor_role == "supervisor"
    assert entry.actor_id is None
    assert entry.ip_address is None
    assert entry.details is None


def test_missing_audio_stays_missing(note):
    note.audio_file_id = None
    view = mask_for_viewer(note, "", VIEWER, UserRole.COACH, (), PLACEHOLDER)
    assert view.audio_file_id is None


def test_default_placeholder_from_settings(note):
    view = mask_for_viewer(note, "", VIEWER, UserRole.COACH)
    assert view.body == PLACEHOLDER
