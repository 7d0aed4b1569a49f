"""Schema validation tests."""

import uuid
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from coachnotes.core.models.note import AccessLevel
from coachnotes.core.schemas.notes import NoteCreate, NoteUpdate, normalize_tags
from coachnotes.core.schemas.search import NoteSearchRequest
from coachnotes.core.schemas.sharing import ShareRequest


class TestNoteCreate:

    def test_defaults(self):
        req = NoteCreate(session_id=uuid.uuid4(), body="Some text")
        assert req.is_encrypted is False
        assert req.access_level == AccessLevel.PRIVATE
        assert req.allow_sharing is False
        assert req.tags == []
        assert req.title is None

    def test_tags_are_normalized(self):
        req = NoteCreate(
            session_id=uuid.uuid4(), body="x", tags=[" Progress ", "progress", "", "Goals"]
        )
        assert req.tags == ["progress", "goals"]

    def test_title_trimmed_and_blank_title_dropped(self):
        assert NoteCreate(session_id=uuid.uuid4(), body="x", title="  Week 1 ").title == "Week 1"
        assert NoteCreate(session_id=uuid.uuid4(), body="x", title="   ").title is None

    @pytest.mark.parametrize(
        "payload",
        [
            {"body": "x"},  # missing session
            {"session_id": str(uuid.uuid4()), "body": "   "},
            {"session_id": str(uuid.uuid4()), "body": "x", "access_level": "public"},
            {"session_id": str(uuid.uuid4()), "body": "x", "title": "t" * 201},
            {"session_id": str(uuid.uuid4()), "body": "x", "tags": ["t" * 51]},
        ],
    )
    def test_invalid_payloads(self, payload):
        with pytest.raises(ValidationError):
            NoteCreate(**payload)

    def test_too_many_tags(self):
        with pytest.raises(ValueError):
            normalize_tags([f"tag{i}" for i in range(21)])


class TestNoteUpdate:

    def test_only_present_fields_are_provided(self):
        req = NoteUpdate(title="New")
        assert req.provided_fields() == {"title": "New"}

    def test_explicit_null_title_clears(self):
        req = NoteUpdate(title=None)
        assert req.provided_fields() == {"title": None}

    @pytest.mark.parametrize("field", ["body", "tags", "is_encrypted", "access_level", "allow_sharing"])
    def test_explicit_null_rejected_for_required_fields(self, field):
        with pytest.raises(ValidationError):
            NoteUpdate(**{field: None})


class TestNoteSearchRequest:

    def test_defaults(self):
        req = NoteSearchRequest()
        assert req.page == 1
        assert req.limit == 20
        assert req.sort_by == "date"
        assert req.sort_order == "desc"
        assert req.query is None

    def test_blank_query_is_none(self):
        assert NoteSearchRequest(query="   ").query is None

    def test_invalid_date_range(self):
        with pytest.raises(ValidationError):
            NoteSearchRequest(
                date_start=datetime(2025, 2, 1, tzinfo=timezone.utc),
                date_end=datetime(2025, 1, 1, tzinfo=timezone.utc),
            )

    def test_naive_dates_are_utc(self):
        req = NoteSearchRequest(date_start=datetime(2025, 1, 1))
        assert req.date_start.tzinfo is not None

    @pytest.mark.parametrize(
        "kwargs",
        [{"page": 0}, {"limit": 0}, {"limit": 101}, {"sort_by": "size"}, {"sort_order": "up"}],
    )
    def test_invalid_paging_and_sorting(self, kwargs):
        with pytest.raises(ValidationError):
            NoteSearchRequest(**kwargs)


class TestShareRequest:

    def test_user_ids_deduplicated(self):
        uid = uuid.uuid4()
        assert ShareRequest(user_ids=[uid, uid]).user_ids == [uid]

    def test_empty_user_ids_rejected(self):
        with pytest.raises(ValidationError):
            ShareRequest(user_ids=[])
