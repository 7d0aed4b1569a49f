"""Decision table tests for the access policy."""

import uuid

import pytest

from coachnotes.core.models import CoachingSession, CoachNote, NoteShare
from coachnotes.core.schemas.actor import UserRole
from coachnotes.core.services.access_policy import (
    AccessDecision,
    AccessPolicy,
    NoteAction,
    Relationship,
)

OWNER = uuid.uuid4()
VIEWER = uuid.uuid4()
STRANGER = uuid.uuid4()
ADMIN = uuid.uuid4()


def make_note(allow_sharing=True, access_level="private", shared_with=()):
    note = CoachNote(
        id=uuid.uuid4(),
        coach_id=OWNER,
        session_id=uuid.uuid4(),
        body="b",
        allow_sharing=allow_sharing,
        access_level=access_level,
    )
    for user_id in shared_with:
        note.shares.append(NoteShare(user_id=user_id, shared_by_user_id=OWNER))
    return note


@pytest.fixture
def policy():
    return AccessPolicy()


@pytest.fixture
def note():
    return make_note(shared_with=[VIEWER])


ACTORS = {
    Relationship.OWNER: (OWNER, UserRole.COACH),
    Relationship.ADMIN: (ADMIN, UserRole.ADMIN),
    Relationship.VIEWER: (VIEWER, UserRole.SUPERVISOR),
    Relationship.OTHER: (STRANGER, UserRole.COACH),
}

EXPECTED = {
    Relationship.OWNER: set(NoteAction),
    Relationship.ADMIN: set(NoteAction),
    Relationship.VIEWER: {NoteAction.VIEW},
    Relationship.OTHER: set(),
}


@pytest.mark.parametrize("rel", list(Relationship))
@pytest.mark.parametrize("action", list(NoteAction))
def test_decision_table(policy, note, rel, action):
    actor_id, role = ACTORS[rel]
    assert policy.relationship(note, actor_id, role) is rel
    assert policy.can_access(note, actor_id, role, action) is (action in EXPECTED[rel])


@pytest.mark.parametrize("rel", list(Relationship))
def test_edit_implies_view(policy, note, rel):
    actor_id, role = ACTORS[rel]
    if policy.can_access(note, actor_id, role, NoteAction.EDIT):
        assert policy.can_access(note, actor_id, role, NoteAction.VIEW)


@pytest.mark.parametrize("action", [NoteAction.SHARE, NoteAction.UNSHARE])
def test_sharing_disabled(policy, action):
    note = make_note(allow_sharing=False)
    assert policy.decide(note, OWNER, UserRole.COACH, action) is AccessDecision.SHARING_DISABLED
    assert policy.decide(note, ADMIN, UserRole.ADMIN, action) is AccessDecision.SHARING_DISABLED
    # strangers are refused outright
    assert policy.decide(note, STRANGER, UserRole.COACH, action) is AccessDecision.DENY
    assert policy.can_access(note, OWNER, UserRole.COACH, action) is False


def test_sharing_flag_does_not_affect_other_actions(policy):
    note = make_note(allow_sharing=False)
    for action in (NoteAction.VIEW, NoteAction.EDIT, NoteAction.DELETE):
        assert policy.can_access(note, OWNER, UserRole.COACH, action)


@pytest.mark.parametrize("level", ["private", "shared", "team"])
def test_access_level_grants_nothing(policy, level):
    note = make_note(access_level=level)
    assert not policy.can_access(note, STRANGER, UserRole.COACH, NoteAction.VIEW)
    assert not policy.can_access(note, STRANGER, UserRole.SUPERVISOR, NoteAction.VIEW)


def test_owner_role_does_not_matter(policy):
    note = make_note()
    assert policy.relationship(note, OWNER, UserRole.CLIENT) is Relationship.OWNER


def test_sees_full_content(policy, note):
    assert policy.sees_full_content(note, OWNER, UserRole.COACH)
    assert policy.sees_full_content(note, ADMIN, UserRole.ADMIN)
    assert not policy.sees_full_content(note, VIEWER, UserRole.COACH)


def test_session_rules(policy):
    client = uuid.uuid4()
    session = CoachingSession(id=uuid.uuid4(), coach_id=OWNER, client_id=client)

    assert policy.can_create(session, OWNER, UserRole.COACH)
    assert policy.can_create(session, ADMIN, UserRole.ADMIN)
    assert not policy.can_create(session, client, UserRole.CLIENT)
    assert not policy.can_create(session, STRANGER, UserRole.COACH)

    assert policy.can_list_session(session, client, UserRole.CLIENT)
    assert policy.can_list_session(session, OWNER, UserRole.COACH)
    assert not policy.can_list_session(session, STRANGER, UserRole.SUPERVISOR)


def test_access_filter(policy):
    assert policy.access_filter(ADMIN, UserRole.ADMIN) is None
    assert policy.access_filter(OWNER, UserRole.COACH) is not None
