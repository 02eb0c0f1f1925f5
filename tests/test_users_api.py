from tests.helpers import auth_headers


async def test_reps_cannot_list_users(client, rep):
    response = await client.get("/users", headers=auth_headers(rep))

    assert response.status_code == 403


async def test_manager_lists_and_filters_users(client, manager, rep, make_user):
    await make_user(name="Casey Closer", position="ENERGY_CONSULTANT")
    headers = auth_headers(manager)

    everyone = await client.get("/users", headers=headers)
    setters = await client.get("/users", params={"position": "JUNIOR_EC"}, headers=headers)
    found = await client.get("/users", params={"search": "CASEY"}, headers=headers)

    assert len(everyone.json()["data"]) == 3
    assert [u["id"] for u in setters.json()["data"]] == [rep.id]
    assert [u["name"] for u in found.json()["data"]] == ["Casey Closer"]


async def test_users_can_only_view_themselves(client, rep, manager):
    own = await client.get(f"/users/{rep.id}", headers=auth_headers(rep))
    other = await client.get(f"/users/{manager.id}", headers=auth_headers(rep))

    assert own.status_code == 200
    assert other.status_code == 403


async def test_update_own_profile(client, rep):
    response = await client.put(
        "/users/me", json={"bio": "Top setter", "phone": "+15555550123"}, headers=auth_headers(rep)
    )

    assert response.json()["data"]["bio"] == "Top setter"
    assert response.json()["data"]["phone"] == "+15555550123"


async def test_admin_updates_role_and_position(client, admin, rep, manager):
    updated = await client.put(
        f"/users/{rep.id}", json={"position": "ENERGY_CONSULTANT", "isActive": False}, headers=auth_headers(admin)
    )
    by_manager = await client.put(f"/users/{rep.id}", json={"role": "ADMIN"}, headers=auth_headers(manager))
    self_deactivate = await client.put(f"/users/{admin.id}", json={"isActive": False}, headers=auth_headers(admin))

    assert updated.json()["data"]["position"] == "ENERGY_CONSULTANT"
    assert updated.json()["data"]["isActive"] is False
    assert by_manager.status_code == 403
    assert self_deactivate.status_code == 400


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["data"]["database"] == "ok"


async def test_null_role_or_active_flag_is_rejected(client, admin, rep):
    headers = auth_headers(admin)

    role = await client.put(f"/users/{rep.id}", json={"role": None}, headers=headers)
    active = await client.put(f"/users/{rep.id}", json={"isActive": None}, headers=headers)
    position = await client.put(f"/users/{rep.id}", json={"position": None}, headers=headers)

    assert role.status_code == 400
    assert active.status_code == 400
    assert position.json()["data"]["position"] is None
    assert position.json()["data"]["role"] == "USER"


async def test_profile_fields_can_be_cleared_but_not_name(client, rep):
    headers = auth_headers(rep)
    await client.put("/users/me", json={"bio": "Top setter"}, headers=headers)

    cleared = await client.put("/users/me", json={"bio": None}, headers=headers)
    no_name = await client.put("/users/me", json={"name": None}, headers=headers)

    assert cleared.json()["data"]["bio"] is None
    assert no_name.status_code == 400
