"""Tests for /auth/me, token handling and user administration."""

import pytest

from workhub.core.security import create_access_token
from workhub.db.enums import Role


@pytest.mark.asyncio
async def test_me_returns_landing_path_and_areas(client, auth, team):
    res = await client.get("/auth/me", headers=auth(team.accounts))
    assert res.status_code == 200
    body = res.json()
    assert body["user"]["role"] == "ROLE_ACCOUNTS"
    assert body["landingPath"] == "/accounts"
    assert set(body["areas"]) == {"accounts", "completed", "operational"}
    assert body["alertPollIntervalSeconds"] == 300


@pytest.mark.asyncio
async def test_client_role_lands_on_unauthorized(client, auth, team):
    body = (await client.get("/auth/me", headers=auth(team.client_user))).json()
    assert body["landingPath"] == "/unauthorized"
    assert body["areas"] == []


@pytest.mark.asyncio
async def test_bad_or_revoked_token_is_401(client, db, team):
    res = await client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401

    token = create_access_token(team.alice.id, team.alice.role, team.alice.token_version)
    team.alice.token_version += 1
    db.commit()
    res = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_admin_lists_users(client, auth, team):
    res = await client.get("/users", headers=auth(team.admin))
    assert res.status_code == 200
    assert len(res.json()) == 9
    assert (await client.get("/users", headers=auth(team.alice))).status_code == 403


@pytest.mark.asyncio
async def test_admin_changes_role(client, auth, team):
    res = await client.put(
        f"/users/{team.sales.id}/role",
        json={"role": Role.ACCOUNTS.value},
        headers=auth(team.admin),
    )
    assert res.status_code == 200
    assert res.json()["role"] == "ROLE_ACCOUNTS"


@pytest.mark.asyncio
async def test_nobody_changes_their_own_role(client, auth, team):
    res = await client.put(
        f"/users/{team.admin.id}/role",
        json={"role": Role.EXECUTIVE.value},
        headers=auth(team.admin),
    )
    assert res.status_code == 403
    assert res.json()["kind"] == "authorization"


@pytest.mark.asyncio
async def test_only_super_admin_grants_super_admin(client, auth, team):
    res = await client.put(
        f"/users/{team.bob.id}/role",
        json={"role": Role.SUPER_ADMIN.value},
        headers=auth(team.admin),
    )
    assert res.status_code == 403

    res = await client.put(
        f"/users/{team.bob.id}/role",
        json={"role": Role.SUPER_ADMIN.value},
        headers=auth(team.super_admin),
    )
    assert res.status_code == 200


@pytest.mark.asyncio
async def test_unknown_role_value_is_rejected(client, auth, team):
    res = await client.put(
        f"/users/{team.bob.id}/role",
        json={"role": "ROLE_INTERN"},
        headers=auth(team.admin),
    )
    assert res.status_code == 422


@pytest.mark.asyncio
async def test_health(client):
    res = await client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"
