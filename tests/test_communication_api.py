from datetime import datetime, timedelta, timezone

from tests.helpers import auth_headers


async def notifications_for(client, user, **params):
    response = await client.get("/communication/notifications", params=params, headers=auth_headers(user))
    assert response.status_code == 200
    return response.json()["data"]


async def test_announcement_fans_out_to_its_audience(client, manager, make_user):
    setter = await make_user(position="JUNIOR_EC")
    consultant = await make_user(position="ENERGY_CONSULTANT")
    unassigned = await make_user()

    response = await client.post(
        "/communication/announcements",
        json={"title": "Blitz Friday", "content": "Meet at the office", "visibleToPositions": ["JUNIOR_EC"]},
        headers=auth_headers(manager),
    )

    assert response.status_code == 201
    announcement_id = response.json()["data"]["id"]
    [notification] = await notifications_for(client, setter)
    assert notification["type"] == "ANNOUNCEMENT"
    assert notification["resourceId"] == announcement_id
    assert await notifications_for(client, consultant) == []
    assert await notifications_for(client, unassigned) == []


async def test_reps_only_see_live_visible_announcements(client, manager, rep):
    headers = auth_headers(manager)
    future = (datetime.now(timezone.utc) + timedelta(days=3)).isoformat()
    past = (datetime.now(timezone.utc) - timedelta(days=3)).isoformat()
    await client.post("/communication/announcements", json={"title": "Live", "content": "Hello all"}, headers=headers)
    await client.post("/communication/announcements", json={"title": "Draft", "content": "Soon", "isDraft": True}, headers=headers)
    await client.post("/communication/announcements", json={"title": "Later", "content": "Soon", "publishDate": future}, headers=headers)
    await client.post("/communication/announcements", json={"title": "Old", "content": "Gone", "expiryDate": past}, headers=headers)
    await client.post(
        "/communication/announcements",
        json={"title": "Managers", "content": "Private", "visibleToPositions": ["MANAGER"]},
        headers=headers,
    )

    rep_view = await client.get("/communication/announcements", headers=auth_headers(rep))
    manager_view = await client.get("/communication/announcements", headers=headers)

    assert [a["title"] for a in rep_view.json()["data"]] == ["Live"]
    assert len(manager_view.json()["data"]) == 5


async def test_announcements_order_pinned_then_priority(client, manager, rep):
    headers = auth_headers(manager)
    for title, extra in [
        ("Low", {"priority": "LOW"}),
        ("Urgent", {"priority": "URGENT"}),
        ("Pinned", {"priority": "LOW", "isPinned": True}),
    ]:
        await client.post("/communication/announcements", json={"title": title, "content": "Body", **extra}, headers=headers)

    response = await client.get("/communication/announcements", headers=auth_headers(rep))

    assert [a["title"] for a in response.json()["data"]] == ["Pinned", "Urgent", "Low"]


async def test_publishing_a_draft_notifies(client, manager, rep):
    headers = auth_headers(manager)
    created = await client.post(
        "/communication/announcements", json={"title": "Draft", "content": "Soon", "isDraft": True}, headers=headers
    )
    announcement_id = created.json()["data"]["id"]
    assert await notifications_for(client, rep) == []

    await client.put(f"/communication/announcements/{announcement_id}", json={"isDraft": False}, headers=headers)

    assert len(await notifications_for(client, rep)) == 1


async def test_reps_cannot_post_announcements(client, rep):
    response = await client.post(
        "/communication/announcements", json={"title": "Hi", "content": "There"}, headers=auth_headers(rep)
    )

    assert response.status_code == 403


async def test_links_are_slugged_and_scoped(client, manager, rep):
    headers = auth_headers(manager)
    created = await client.post(
        "/communication/links",
        json={"title": "Commission Sheet", "url": "https://example.com/sheet", "category": "Pay & Commission"},
        headers=headers,
    )
    await client.post(
        "/communication/links",
        json={"title": "Manager Portal", "url": "https://example.com/mgr", "visibleToPositions": ["MANAGER"]},
        headers=headers,
    )

    assert created.json()["data"]["categorySlug"] == "pay-commission"
    rep_links = await client.get("/communication/links", headers=auth_headers(rep))
    assert [link["title"] for link in rep_links.json()["data"]] == ["Commission Sheet"]
    [notification] = await notifications_for(client, rep)
    assert notification["type"] == "LINK"


async def test_invalid_link_url_is_rejected(client, manager):
    response = await client.post(
        "/communication/links", json={"title": "Broken", "url": "not a url"}, headers=auth_headers(manager)
    )

    assert response.status_code == 400


async def test_mark_notifications_read(client, admin, rep, make_user):
    other = await make_user()
    headers = auth_headers(admin)
    first = await client.post(
        "/communication/notifications",
        json={"userId": rep.id, "title": "Welcome", "message": "Hi", "type": "SYSTEM"},
        headers=headers,
    )
    await client.post(
        "/communication/notifications",
        json={"userId": rep.id, "title": "Reminder", "message": "Training due", "type": "TRAINING"},
        headers=headers,
    )
    notification_id = first.json()["data"]["id"]

    forbidden = await client.post(f"/communication/notifications/{notification_id}/read", headers=auth_headers(other))
    marked = await client.post(f"/communication/notifications/{notification_id}/read", headers=auth_headers(rep))

    assert forbidden.status_code == 403
    assert marked.json()["data"]["isRead"] is True
    assert len(await notifications_for(client, rep, unreadOnly="true")) == 1

    await client.post("/communication/notifications/read-all", headers=auth_headers(rep))
    assert await notifications_for(client, rep, unreadOnly="true") == []


async def test_only_admins_create_notifications(client, manager, rep):
    response = await client.post(
        "/communication/notifications",
        json={"userId": rep.id, "title": "Hi", "message": "There", "type": "SYSTEM"},
        headers=auth_headers(manager),
    )

    assert response.status_code == 403


async def test_null_audience_on_announcement_update_is_rejected(client, manager, rep):
    headers = auth_headers(manager)
    created = await client.post(
        "/communication/announcements",
        json={"title": "Setters only", "content": "Body", "visibleToPositions": ["JUNIOR_EC"]},
        headers=headers,
    )
    announcement_id = created.json()["data"]["id"]

    response = await client.put(
        f"/communication/announcements/{announcement_id}", json={"visibleToRoles": None}, headers=headers
    )
    cleared = await client.put(
        f"/communication/announcements/{announcement_id}", json={"category": None}, headers=headers
    )

    assert response.status_code == 400
    assert cleared.status_code == 200
    listed = await client.get("/communication/announcements", headers=auth_headers(rep))
    assert [a["visibleToRoles"] for a in listed.json()["data"]] == [[]]


async def test_null_is_active_on_link_update_is_rejected(client, manager):
    headers = auth_headers(manager)
    created = await client.post(
        "/communication/links", json={"title": "Rate Card", "url": "https://example.com/rates"}, headers=headers
    )
    link_id = created.json()["data"]["id"]

    response = await client.put(f"/communication/links/{link_id}", json={"isActive": None}, headers=headers)
    no_url = await client.put(f"/communication/links/{link_id}", json={"url": None}, headers=headers)

    assert response.status_code == 400
    assert no_url.status_code == 400
    listed = await client.get("/communication/links", headers=headers)
    assert listed.json()["data"][0]["isActive"] is True
