"""Tests for alert endpoints and the internal scheduled scan."""

from datetime import datetime, timedelta, timezone

import pytest

from workhub.db.enums import Stage


@pytest.fixture
def overdue_review(db, pipeline):
    project = pipeline.create()
    for stage in (Stage.ON_PROGRESS, Stage.QUOTATION_SENT, Stage.IN_REVIEW):
        project = pipeline.transition(project, stage)
    project.stage_change_timestamp = datetime.now(timezone.utc) - timedelta(days=10)
    db.commit()
    return project


@pytest.mark.asyncio
async def test_generate_list_and_dismiss(client, auth, team, overdue_review):
    res = await client.post("/alerts/generate", headers=auth(team.admin))
    assert res.json() == {"created": 1}

    active = (await client.get("/alerts/active", headers=auth(team.admin))).json()
    assert len(active) == 1
    alert = active[0]
    assert alert["alertType"] == "STAGE_INACTIVITY"
    assert alert["daysOverdue"] == 3
    assert alert["projectId"] == overdue_review.id

    summary = (await client.get("/alerts/summary", headers=auth(team.super_admin))).json()
    assert summary == {"total": 1, "critical": 0, "warning": 1, "info": 0}

    first = await client.post(f"/alerts/{alert['id']}/dismiss", headers=auth(team.admin))
    assert first.status_code == 200
    assert first.json()["isActive"] is False

    second = await client.post(f"/alerts/{alert['id']}/dismiss", headers=auth(team.super_admin))
    assert second.status_code == 200
    assert second.json()["dismissedAt"] == first.json()["dismissedAt"]
    assert second.json()["dismissedBy"] == team.admin.name

    assert (await client.get("/alerts/active", headers=auth(team.admin))).json() == []


@pytest.mark.asyncio
async def test_alerts_are_admin_only(client, auth, team):
    assert (await client.get("/alerts/active", headers=auth(team.alice))).status_code == 403
    assert (await client.post("/alerts/generate", headers=auth(team.accounts))).status_code == 403


@pytest.mark.asyncio
async def test_project_alerts_visible_to_pipeline_roles(client, auth, team, overdue_review):
    await client.post("/alerts/generate", headers=auth(team.admin))
    res = await client.get(f"/alerts/project/{overdue_review.id}", headers=auth(team.alice))
    assert res.status_code == 200
    assert len(res.json()) == 1


@pytest.mark.asyncio
async def test_dismiss_unknown_alert_is_404(client, auth, team):
    res = await client.post("/alerts/12345/dismiss", headers=auth(team.admin))
    assert res.status_code == 404
    assert res.json()["kind"] == "not_found"


@pytest.mark.asyncio
async def test_internal_scan_requires_secret(client, overdue_review):
    res = await client.post("/internal/scheduled/alerts", headers={"X-Internal-Secret": "wrong"})
    assert res.status_code == 403

    res = await client.post(
        "/internal/scheduled/alerts", headers={"X-Internal-Secret": "test-internal-secret"}
    )
    assert res.status_code == 200
    assert res.json() == {"created": 1}
