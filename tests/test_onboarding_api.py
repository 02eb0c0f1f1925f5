import pytest

from tests.helpers import auth_headers

TRACK = {
    "name": "Junior EC Ramp",
    "description": "First two weeks for new appointment setters",
    "visibleToPositions": ["JUNIOR_EC"],
}


@pytest.fixture
async def track(client, manager):
    headers = auth_headers(manager)
    created = await client.post("/onboarding/tracks", json=TRACK, headers=headers)
    assert created.status_code == 201
    track = created.json()["data"]

    resource = await client.post(
        "/onboarding/resources",
        json={"title": "Door script", "type": "PDF", "url": "https://example.com/script.pdf"},
        headers=headers,
    )
    for order, title in enumerate(["Shadow a closer", "Knock 50 doors"], start=1):
        step = await client.post(
            "/onboarding/steps",
            json={
                "trackId": track["id"],
                "title": title,
                "description": f"{title} this week",
                "order": order,
                "resourceIds": [resource.json()["data"]["id"]] if order == 1 else [],
            },
            headers=headers,
        )
        assert step.status_code == 201

    detail = await client.get(f"/onboarding/tracks/{track['id']}", headers=headers)
    return detail.json()["data"]


async def test_rep_gets_the_track_for_their_position(client, track, rep):
    response = await client.get("/onboarding", headers=auth_headers(rep))

    data = response.json()["data"]
    assert data["track"]["id"] == track["id"]
    assert [s["title"] for s in data["steps"]] == ["Shadow a closer", "Knock 50 doors"]
    assert data["steps"][0]["resources"][0]["title"] == "Door script"
    assert all(s["progress"] is None for s in data["steps"])
    assert (data["completedSteps"], data["totalSteps"]) == (0, 2)


async def test_other_positions_get_no_track(client, track, make_user):
    consultant = await make_user(position="ENERGY_CONSULTANT")
    no_position = await make_user()

    for user in (consultant, no_position):
        mine = await client.get("/onboarding", headers=auth_headers(user))
        listed = await client.get("/onboarding/tracks", headers=auth_headers(user))
        detail = await client.get(f"/onboarding/tracks/{track['id']}", headers=auth_headers(user))
        step = await client.get(f"/onboarding/steps/{track['steps'][0]['id']}", headers=auth_headers(user))

        assert mine.json()["data"]["track"] is None
        assert mine.json()["data"]["message"] == "No onboarding tracks available for your position"
        assert listed.json()["data"] == []
        assert detail.status_code == 403
        assert step.status_code == 403


async def test_role_restricted_track_is_hidden(client, manager, rep, admin):
    await client.post(
        "/onboarding/tracks",
        json={**TRACK, "name": "Admin tooling", "visibleToRoles": ["ADMIN"], "visibleToPositions": []},
        headers=auth_headers(manager),
    )

    rep_tracks = await client.get("/onboarding/tracks", headers=auth_headers(rep))
    admin_mine = await client.get("/onboarding", headers=auth_headers(admin))

    assert rep_tracks.json()["data"] == []
    assert admin_mine.json()["data"]["track"]["name"] == "Admin tooling"


async def test_inactive_track_is_hidden_from_reps(client, track, manager, rep):
    await client.put(f"/onboarding/tracks/{track['id']}", json={"isActive": False}, headers=auth_headers(manager))

    mine = await client.get("/onboarding", headers=auth_headers(rep))
    detail = await client.get(f"/onboarding/tracks/{track['id']}", headers=auth_headers(rep))
    managed = await client.get("/onboarding/tracks", headers=auth_headers(manager))

    assert mine.json()["data"]["track"] is None
    assert detail.status_code == 404
    assert [t["isActive"] for t in managed.json()["data"]] == [False]


async def test_step_progress_lifecycle(client, track, rep):
    headers = auth_headers(rep)
    step_id = track["steps"][0]["id"]
    url = f"/onboarding/steps/{step_id}/progress"

    started = await client.put(url, json={"status": "IN_PROGRESS", "notes": "Riding along Tuesday"}, headers=headers)
    completed = await client.put(url, json={"status": "COMPLETED"}, headers=headers)
    mine = await client.get("/onboarding", headers=headers)

    assert started.json()["data"]["startedAt"] is not None
    assert started.json()["data"]["completedAt"] is None
    data = completed.json()["data"]
    assert data["status"] == "COMPLETED"
    assert data["notes"] == "Riding along Tuesday"
    assert data["completedAt"] is not None
    assert data["startedAt"] == started.json()["data"]["startedAt"]
    assert mine.json()["data"]["completedSteps"] == 1

    reset = await client.delete(url, headers=headers)
    step = await client.get(f"/onboarding/steps/{step_id}", headers=headers)
    assert reset.json()["data"]["message"] == "Step progress reset successfully"
    assert step.json()["data"]["progress"] is None


async def test_invalid_progress_status_is_rejected(client, track, rep):
    response = await client.put(
        f"/onboarding/steps/{track['steps'][0]['id']}/progress", json={"status": "DONE"}, headers=auth_headers(rep)
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Validation error"


async def test_manager_resets_a_users_progress(client, track, manager, rep):
    step_id = track["steps"][1]["id"]
    await client.put(f"/onboarding/steps/{step_id}/progress", json={"status": "COMPLETED"}, headers=auth_headers(rep))
    url = f"/onboarding/users/{rep.id}/steps/{step_id}/reset"

    by_rep = await client.post(url, headers=auth_headers(rep))
    reset = await client.post(url, headers=auth_headers(manager))
    again = await client.post(url, headers=auth_headers(manager))
    unknown_user = await client.post(f"/onboarding/users/999999/steps/{step_id}/reset", headers=auth_headers(manager))

    assert by_rep.status_code == 403
    assert reset.json()["data"]["message"] == "User's step progress reset successfully"
    assert again.status_code == 404
    assert again.json()["error"] == "No progress record found to reset"
    assert unknown_user.json()["error"] == "User not found"


async def test_update_step_moves_and_replaces_resources(client, track, manager):
    headers = auth_headers(manager)
    other = await client.post("/onboarding/tracks", json={**TRACK, "name": "Closer Ramp"}, headers=headers)
    step_id = track["steps"][0]["id"]

    moved = await client.put(
        f"/onboarding/steps/{step_id}",
        json={"trackId": other.json()["data"]["id"], "resourceIds": []},
        headers=headers,
    )
    missing_track = await client.put(f"/onboarding/steps/{step_id}", json={"trackId": 999999}, headers=headers)
    null_title = await client.put(f"/onboarding/steps/{step_id}", json={"title": None}, headers=headers)
    by_track = await client.get("/onboarding/steps", params={"trackId": track["id"]}, headers=headers)

    assert moved.json()["data"]["trackId"] == other.json()["data"]["id"]
    assert moved.json()["data"]["resources"] == []
    assert missing_track.json()["error"] == "Target onboarding track not found"
    assert null_title.status_code == 400
    assert [s["title"] for s in by_track.json()["data"]] == ["Knock 50 doors"]


async def test_step_with_unknown_resource_is_not_created(client, track, manager):
    response = await client.post(
        "/onboarding/steps",
        json={"trackId": track["id"], "title": "Read the FAQ", "resourceIds": [999999]},
        headers=auth_headers(manager),
    )

    assert response.status_code == 404
    assert response.json()["error"] == "Resource not found"


async def test_resource_crud(client, track, manager, rep):
    headers = auth_headers(manager)
    resource_id = track["steps"][0]["resources"][0]["id"]

    detail = await client.get(f"/onboarding/resources/{resource_id}", headers=auth_headers(rep))
    bad_url = await client.put(f"/onboarding/resources/{resource_id}", json={"url": "not a url"}, headers=headers)
    updated = await client.put(
        f"/onboarding/resources/{resource_id}", json={"type": "VIDEO", "description": "Watch first"}, headers=headers
    )
    rep_list = await client.get("/onboarding/resources", headers=auth_headers(rep))
    deleted = await client.delete(f"/onboarding/resources/{resource_id}", headers=headers)
    step = await client.get(f"/onboarding/steps/{track['steps'][0]['id']}", headers=headers)

    assert [s["title"] for s in detail.json()["data"]["steps"]] == ["Shadow a closer"]
    assert bad_url.status_code == 400
    assert updated.json()["data"]["type"] == "VIDEO"
    assert rep_list.status_code == 403
    assert deleted.status_code == 200
    assert step.json()["data"]["resources"] == []


async def test_delete_track_removes_steps(client, track, manager, rep):
    headers = auth_headers(manager)
    step_id = track["steps"][0]["id"]
    await client.put(f"/onboarding/steps/{step_id}/progress", json={"status": "IN_PROGRESS"}, headers=auth_headers(rep))

    deleted = await client.delete(f"/onboarding/tracks/{track['id']}", headers=headers)
    step = await client.get(f"/onboarding/steps/{step_id}", headers=headers)

    assert deleted.json()["data"]["message"] == "Onboarding track deleted successfully"
    assert step.status_code == 404


async def test_reps_cannot_manage_tracks(client, track, rep):
    headers = auth_headers(rep)

    create = await client.post("/onboarding/tracks", json=TRACK, headers=headers)
    update = await client.put(f"/onboarding/tracks/{track['id']}", json={"name": "Mine now"}, headers=headers)
    steps = await client.get("/onboarding/steps", headers=headers)
    analytics = await client.get("/onboarding/analytics", headers=headers)

    assert create.status_code == 403
    assert update.status_code == 403
    assert steps.status_code == 403
    assert analytics.status_code == 403


async def test_analytics(client, track, manager, rep, make_user):
    other_rep = await make_user(position="JUNIOR_EC")
    first, second = [s["id"] for s in track["steps"]]
    for step_id in (first, second):
        await client.put(f"/onboarding/steps/{step_id}/progress", json={"status": "COMPLETED"}, headers=auth_headers(rep))
    await client.put(f"/onboarding/steps/{first}/progress", json={"status": "IN_PROGRESS"}, headers=auth_headers(other_rep))

    response = await client.get("/onboarding/analytics", params={"periodDays": 7}, headers=auth_headers(manager))

    data = response.json()["data"]
    assert data["activeUsers"] == 3
    assert data["period"]["days"] == 7
    [stats] = data["tracks"]
    assert stats["totalSteps"] == 2
    assert stats["usersCompletedAll"] == 1
    assert stats["trackCompletionRate"] == 33
    first_stats, second_stats = stats["stepStats"]
    assert (first_stats["totalAttempts"], first_stats["completions"], first_stats["inProgress"]) == (2, 1, 1)
    assert first_stats["completionRate"] == 50
    assert second_stats["completionRate"] == 100
    assert {a["stepTitle"] for a in data["recentActivity"]} == {"Shadow a closer", "Knock 50 doors"}
    assert all(a["userId"] == rep.id for a in data["recentActivity"])
