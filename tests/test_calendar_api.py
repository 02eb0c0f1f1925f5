from tests.helpers import auth_headers


def event(title, start, end, **extra):
    return {"title": title, "eventType": "MEETING", "startDate": start, "endDate": end, **extra}


async def test_end_before_start_is_rejected(client, manager):
    response = await client.post(
        "/calendar/events",
        json=event("Backwards", "2025-05-02T10:00:00Z", "2025-05-01T10:00:00Z"),
        headers=auth_headers(manager),
    )

    assert response.status_code == 400
    assert response.json()["success"] is False


async def test_range_filter_returns_overlapping_events_in_start_order(client, manager, rep):
    headers = auth_headers(manager)
    await client.post("/calendar/events", json=event("Late", "2025-05-20T09:00:00Z", "2025-05-20T10:00:00Z"), headers=headers)
    await client.post("/calendar/events", json=event("Spans", "2025-04-28T09:00:00Z", "2025-05-02T10:00:00Z"), headers=headers)
    await client.post("/calendar/events", json=event("June", "2025-06-05T09:00:00Z", "2025-06-05T10:00:00Z"), headers=headers)

    response = await client.get(
        "/calendar/events",
        params={"startDate": "2025-05-01T00:00:00Z", "endDate": "2025-05-31T23:59:59Z"},
        headers=auth_headers(rep),
    )

    assert [e["title"] for e in response.json()["data"]] == ["Spans", "Late"]


async def test_event_visibility_and_type_filter(client, manager, rep):
    headers = auth_headers(manager)
    await client.post(
        "/calendar/events",
        json=event("Manager sync", "2025-05-01T09:00:00Z", "2025-05-01T10:00:00Z", visibleToPositions=["MANAGER"]),
        headers=headers,
    )
    await client.post(
        "/calendar/events",
        json=event("Saturday blitz", "2025-05-03T09:00:00Z", "2025-05-03T15:00:00Z", eventType="BLITZ", isBlitz=True),
        headers=headers,
    )

    rep_events = await client.get("/calendar/events", headers=auth_headers(rep))
    blitzes = await client.get("/calendar/events", params={"eventType": "BLITZ"}, headers=headers)

    assert [e["title"] for e in rep_events.json()["data"]] == ["Saturday blitz"]
    assert [e["title"] for e in blitzes.json()["data"]] == ["Saturday blitz"]


async def test_only_managers_or_creators_edit_events(client, manager, rep):
    created = await client.post(
        "/calendar/events",
        json=event("Standup", "2025-05-01T09:00:00Z", "2025-05-01T09:15:00Z"),
        headers=auth_headers(manager),
    )
    event_id = created.json()["data"]["id"]

    rep_create = await client.post(
        "/calendar/events", json=event("Mine", "2025-05-01T09:00:00Z", "2025-05-01T09:15:00Z"), headers=auth_headers(rep)
    )
    rep_update = await client.put(f"/calendar/events/{event_id}", json={"title": "Hijacked"}, headers=auth_headers(rep))
    manager_update = await client.put(
        f"/calendar/events/{event_id}", json={"location": "Room 2"}, headers=auth_headers(manager)
    )
    bad_dates = await client.put(
        f"/calendar/events/{event_id}", json={"endDate": "2025-04-30T09:00:00Z"}, headers=auth_headers(manager)
    )
    deleted = await client.delete(f"/calendar/events/{event_id}", headers=auth_headers(manager))

    assert rep_create.status_code == 403
    assert rep_update.status_code == 403
    assert manager_update.json()["data"]["location"] == "Room 2"
    assert bad_dates.status_code == 400
    assert deleted.status_code == 200


async def test_null_for_required_event_field_is_rejected(client, manager, rep):
    headers = auth_headers(manager)
    created = await client.post(
        "/calendar/events",
        json=event("Team call", "2025-05-01T09:00:00Z", "2025-05-01T09:30:00Z", location="Zoom"),
        headers=headers,
    )
    event_id = created.json()["data"]["id"]

    positions = await client.put(f"/calendar/events/{event_id}", json={"visibleToPositions": None}, headers=headers)
    all_day = await client.put(f"/calendar/events/{event_id}", json={"allDay": None}, headers=headers)
    location = await client.put(f"/calendar/events/{event_id}", json={"location": None}, headers=headers)

    assert positions.status_code == 400
    assert all_day.status_code == 400
    assert location.json()["data"]["location"] is None
    rep_events = await client.get("/calendar/events", headers=auth_headers(rep))
    assert [e["title"] for e in rep_events.json()["data"]] == ["Team call"]


async def test_event_categories_count_each_type(client, manager, rep):
    headers = auth_headers(manager)
    await client.post("/calendar/events", json=event("Sync", "2025-05-01T09:00:00Z", "2025-05-01T10:00:00Z"), headers=headers)
    await client.post("/calendar/events", json=event("Review", "2025-05-02T09:00:00Z", "2025-05-02T10:00:00Z"), headers=headers)
    await client.post(
        "/calendar/events",
        json=event("Blitz", "2025-05-03T09:00:00Z", "2025-05-03T15:00:00Z", eventType="BLITZ"),
        headers=headers,
    )

    response = await client.get("/calendar/events/categories", headers=auth_headers(rep))

    assert response.status_code == 200
    categories = {c["type"]: c for c in response.json()["data"]}
    assert set(categories) == {"TRAINING", "MEETING", "APPOINTMENT", "BLITZ", "CONTEST", "HOLIDAY", "OTHER"}
    assert categories["MEETING"] == {"type": "MEETING", "displayName": "Meeting", "count": 2}
    assert categories["BLITZ"]["count"] == 1
    assert categories["HOLIDAY"]["count"] == 0
