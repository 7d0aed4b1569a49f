"""
End-to-end workflow over HTTP: a coach writes encrypted notes, shares one
with a supervisor, edits, searches and finally deletes, with the audit
trail checked along the way.
"""

import pytest


@pytest.mark.asyncio
async def test_coach_notes_workflow(async_client, auth_headers, coach, supervisor,
                                    other_coach, admin, coaching_session):
    coach_h = auth_headers(coach)
    supervisor_h = auth_headers(supervisor)

    # 1. Coach writes two notes, one encrypted and shareable
    resp = await async_client.post(
        "/api/notes/",
        json={
            "session_id": str(coaching_session.id),
            "title": "Intake",
            "body": "Client wants to build a morning routine.",
            "tags": ["goals"],
            "is_encrypted": True,
            "allow_sharing": True,
            "access_level": "shared",
        },
        headers=coach_h,
    )
    assert resp.status_code == 201
    intake = resp.json()
    assert intake["is_encrypted"] is True
    assert "morning" not in intake["searchable_content"]

    resp = await async_client.post(
        "/api/notes/",
        json={"session_id": str(coaching_session.id), "title": "Follow up", "body": "Routine holding.",
              "tags": ["progress"]},
        headers=coach_h,
    )
    follow_up = resp.json()

    # 2. Encrypted content is still searchable by its owner
    resp = await async_client.get("/api/search/notes", params={"q": "morning"}, headers=coach_h)
    assert [n["id"] for n in resp.json()["items"]] == [intake["id"]]

    # 3. Share with the supervisor, who gets a masked view
    resp = await async_client.post(
        f"/api/notes/{intake['id']}/share",
        json={"user_ids": [str(supervisor.id)], "reason": "monthly supervision"},
        headers=coach_h,
    )
    assert resp.status_code == 200

    resp = await async_client.get(f"/api/notes/{intake['id']}", headers=supervisor_h)
    assert resp.json()["body"] == "[REDACTED]"
    assert resp.json()["title"] == "Intake"

    resp = await async_client.get("/api/search/notes", params={"tags": ["goals", "progress"]},
                                  headers=supervisor_h)
    assert [n["id"] for n in resp.json()["items"]] == [intake["id"]]

    # 4. A stranger is refused and the refusal is audited
    resp = await async_client.get(f"/api/notes/{follow_up['id']}", headers=auth_headers(other_coach))
    assert resp.status_code == 403

    # 5. The supervisor cannot edit
    resp = await async_client.put(f"/api/notes/{intake['id']}", json={"title": "Mine"}, headers=supervisor_h)
    assert resp.status_code == 403

    # 6. Owner edits; search sees the new title at once
    resp = await async_client.put(
        f"/api/notes/{intake['id']}", json={"title": "Intake session"}, headers=coach_h
    )
    assert resp.status_code == 200
    resp = await async_client.get("/api/search/notes", params={"q": "session"}, headers=coach_h)
    assert [n["id"] for n in resp.json()["items"]] == [intake["id"]]

    # 7. Trail as seen by the owner
    resp = await async_client.get(f"/api/notes/{intake['id']}/audit", headers=coach_h)
    assert [e["action"] for e in resp.json()["entries"]] == [
        "created", "shared", "viewed", "access_denied", "updated"
    ]
    resp = await async_client.get(f"/api/notes/{follow_up['id']}/audit", headers=coach_h)
    denied = resp.json()["entries"][-1]
    assert denied["action"] == "access_denied"
    assert denied["actor_id"] == str(other_coach.id)

    # 8. Delete; the trail survives for admins
    resp = await async_client.delete(f"/api/notes/{intake['id']}", headers=coach_h)
    assert resp.status_code == 204
    resp = await async_client.get("/api/search/notes", params={"q": "session"}, headers=coach_h)
    assert resp.json()["items"] == []
    resp = await async_client.get(f"/api/notes/{intake['id']}/audit", headers=auth_headers(admin))
    assert resp.json()["entries"][-1]["action"] == "deleted"
