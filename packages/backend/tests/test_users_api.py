"""Workspace membership API tests.

Learn: Every listing is scoped by the ws_id inside the caller's token;
there is no way to ask for another workspace's members.
"""

import pytest

from conftest import bearer, signup


@pytest.mark.asyncio
async def test_list_users_in_creation_order(client):
    t1 = await signup(client, "Tyr Chen", "tchen@acme.org", "acme")
    await signup(client, "Alice", "alice@acme.org", "acme")
    await signup(client, "Bob", "bob@acme.org", "acme")

    r = await client.get("/api/users", headers=bearer(t1))
    assert r.status_code == 200
    users = r.json()
    assert [u["fullname"] for u in users] == ["Tyr Chen", "Alice", "Bob"]
    assert users[0]["id"] < users[1]["id"] < users[2]["id"]
    for u in users:
        assert set(u) == {"id", "fullname", "email"}


@pytest.mark.asyncio
async def test_list_users_scoped_to_own_workspace(client):
    acme = await signup(client, "Tyr Chen", "tchen@acme.org", "acme")
    other = await signup(client, "Eve", "eve@other.org", "other")

    r = await client.get("/api/users", headers=bearer(acme))
    assert [u["email"] for u in r.json()] == ["tchen@acme.org"]

    r = await client.get("/api/users", headers=bearer(other))
    assert [u["email"] for u in r.json()] == ["eve@other.org"]


@pytest.mark.asyncio
async def test_list_users_requires_auth(client):
    r = await client.get("/api/users")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_workspace_owner_is_first_signup(client, codec):
    first = await signup(client, "Tyr Chen", "tchen@acme.org", "none")
    second = await signup(client, "Alice", "alice@acme.org", "none")

    r = await client.get("/api/workspace", headers=bearer(second))
    assert r.status_code == 200
    ws = r.json()
    assert ws["name"] == "none"
    assert ws["owner_id"] == codec.verify(first).user_id
    assert ws["id"] == codec.verify(second).ws_id


@pytest.mark.asyncio
async def test_unowned_workspace_owner_is_null(client, db_session, codec):
    """The 0 sentinel never leaks out of the API."""
    from chatserver.services.identity_store import IdentityStore

    store = IdentityStore(db_session)
    ws = await store.insert_workspace("ghost-town")
    # A token for a workspace nobody has joined yet
    token = codec.issue(user_id=999, ws_id=ws.id)

    r = await client.get("/api/workspace", headers=bearer(token))
    assert r.status_code == 200
    assert r.json()["owner_id"] is None


@pytest.mark.asyncio
async def test_me_for_deleted_user_is_404(client, codec):
    token = codec.issue(user_id=424242, ws_id=1)
    r = await client.get("/api/me", headers=bearer(token))
    assert r.status_code == 404
