import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.dialects import postgresql

import coachnotes.core.services.audit_trail as audit_module
from coachnotes.core.models import AuditAction, NoteAuditEntry
from coachnotes.core.models.base import as_utc
from coachnotes.core.services.audit_trail import AuditTrail


@pytest.fixture
def trail(test_session):
    return AuditTrail(test_session)


@pytest.mark.asyncio
async def test_append_records_actor_details(trail, test_session, coach):
    note_id = uuid.uuid4()
    entry = await trail.append(note_id, AuditAction.VIEWED, coach, {"via": "session_list"})
    await test_session.commit()

    assert entry.id is not None
    assert entry.action == "viewed"
    assert entry.actor_id == coach.id
    assert entry.actor_role == "coach"
    assert entry.ip_address == "10.0.0.1"
    assert entry.user_agent == "pytest"
    assert entry.details == {"via": "session_list"}


@pytest.mark.asyncio
async def test_entries_in_append_order(trail, test_session, coach):
    note_id = uuid.uuid4()
    for action in (AuditAction.CREATED, AuditAction.VIEWED, AuditAction.UPDATED):
        await trail.append(note_id, action, coach)
    await test_session.commit()

    assert [e.action for e in await trail.entries(note_id)] == ["created", "viewed", "updated"]
    assert [e.action for e in await trail.recent(note_id, 2)] == ["updated", "viewed"]
    assert await trail.count(note_id) == 3


@pytest.mark.asyncio
async def test_timestamps_never_go_backwards(trail, test_session, coach, monkeypatch):
    note_id = uuid.uuid4()
    now = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

    monkeypatch.setattr(audit_module, "utcnow", lambda: now)
    await trail.append(note_id, AuditAction.CREATED, coach)

    # clock steps back
    monkeypatch.setattr(audit_module, "utcnow", lambda: now - timedelta(minutes=5))
    await trail.append(note_id, AuditAction.VIEWED, coach)
    await test_session.commit()

    first, second = await trail.entries(note_id)
    assert as_utc(second.timestamp) >= as_utc(first.timestamp)
    assert second.id > first.id


@pytest.mark.asyncio
async def test_trails_are_per_note(trail, test_session, coach, other_coach):
    a, b = uuid.uuid4(), uuid.uuid4()
    await trail.append(a, AuditAction.CREATED, coach)
    await trail.append(b, AuditAction.CREATED, other_coach)
    await trail.append(b, AuditAction.DELETED, other_coach)
    await test_session.commit()

    assert await trail.count(a) == 1
    assert [e.action for e in await trail.entries(b)] == ["created", "deleted"]


@pytest.mark.asyncio
async def test_denial_without_note(trail, test_session, client_actor):
    entry = await trail.append(None, AuditAction.ACCESS_DENIED, client_actor, {"attempted_action": "create"})
    await test_session.commit()

    stored = await test_session.get(NoteAuditEntry, entry.id)
    assert stored.note_id is None
    assert stored.details["attempted_action"] == "create"


@pytest.mark.asyncio
async def test_note_row_locked_before_last_timestamp(trail, test_session, coach, monkeypatch):
    note_id = uuid.uuid4()
    statements = []
    execute = test_session.execute

    async def recording_execute(stmt, *args, **kwargs):
        statements.append(stmt)
        return await execute(stmt, *args, **kwargs)

    monkeypatch.setattr(test_session, "execute", recording_execute)
    await trail.append(note_id, AuditAction.VIEWED, coach)

    lock = str(statements[0].compile(dialect=postgresql.dialect()))
    assert "coach_notes" in lock
    assert lock.rstrip().endswith("FOR UPDATE")
    assert "max" in str(statements[1].compile(dialect=postgresql.dialect())).lower()


@pytest.mark.asyncio
async def test_denial_without_note_takes_no_lock(trail, client_actor, monkeypatch):
    calls = []

    async def lock_note(note_id):
        calls.append(note_id)

    monkeypatch.setattr(trail.repo, "lock_note", lock_note)
    await trail.append(None, AuditAction.ACCESS_DENIED, client_actor)
    assert calls == []
