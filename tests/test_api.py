"""Tests for the HTTP surface."""
from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from lms_api.api.app import app
from lms_api.db.session import get_db
from lms_api.queue import worker
from lms_api.queue.scheduler import build_runtime
from lms_api.utils.datetime import utcnow


@pytest.fixture()
def client(session_factory, email_sender, launcher):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.scheduler = build_runtime(email_sender, launcher, session_factory)
    yield TestClient(app)
    app.dependency_overrides.clear()
    del app.state.scheduler


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_manual_trigger_sends_due_emails(client, factory, email_sender):
    creator = factory.user()
    factory.scheduled_email(factory.template(), creator, [factory.user(), factory.user(is_active=False)])

    response = client.post("/admin/manual-trigger/scheduled-emails")

    assert response.status_code == 200
    assert response.json() == {"processed": 1, "success": 1, "failed": 0, "skipped": False}
    assert len(email_sender.sent) == 1


def test_manual_trigger_simulations_and_token_cleanup(client):
    simulations = client.post("/admin/manual-trigger/scheduled-simulations").json()
    tokens = client.post("/admin/manual-trigger/token-cleanup").json()

    assert simulations["processed"] == 0
    assert simulations["errors"] == []
    assert tokens == {"deleted": 0}


def test_manual_trigger_course_lifecycle(client, factory):
    factory.user_course(factory.user(), factory.course(), launch_date=utcnow() - timedelta(minutes=1))

    response = client.post("/admin/manual-trigger/course-lifecycle")

    assert response.status_code == 200
    assert response.json() == {"activated": 1, "expired": 0}


def test_cron_status_lists_jobs(client):
    client.post("/admin/manual-trigger/token-cleanup")

    payload = client.get("/admin/cron-status").json()

    assert payload["running"] is False
    jobs = {job["name"]: job for job in payload["jobs"]}
    assert set(jobs) == {"scheduled-emails", "scheduled-simulations", "token-cleanup", "course-lifecycle"}
    assert jobs["token-cleanup"]["last_result"] == {"deleted": 0}
    assert jobs["scheduled-emails"]["last_run_at"] is None


def test_enqueue_returns_job_id(client, monkeypatch):
    monkeypatch.setattr(worker, "enqueue_job", lambda name: SimpleNamespace(id=f"job-{name}"))

    response = client.post("/admin/enqueue/scheduled-emails")

    assert response.json() == {"job_id": "job-scheduled-emails"}


def test_enqueue_unknown_job_is_not_found(client):
    response = client.post("/admin/enqueue/does-not-exist")

    assert response.status_code == 404


def test_domain_errors_are_translated(client):
    response = client.get("/scheduled-emails/missing")

    assert response.status_code == 404
    assert response.json() == {"detail": "Scheduled email not found"}


def test_scheduled_email_lifecycle(client, factory):
    creator = factory.user()
    recipient = factory.user()
    template = factory.template()

    created = client.post(
        "/scheduled-emails/",
        json={
            "template_id": template.id,
            "created_by": creator.id,
            "scheduled_at": (utcnow() + timedelta(hours=1)).isoformat(),
            "recipient_ids": [recipient.id],
            "status": "scheduled",
        },
    )
    assert created.status_code == 201
    schedule = created.json()
    assert schedule["recipient_ids"] == [recipient.id]

    listing = client.get("/scheduled-emails/", params={"status": "scheduled"}).json()
    assert listing["total"] == 1

    cancelled = client.post(f"/scheduled-emails/{schedule['id']}/cancel")
    assert cancelled.json()["status"] == "cancelled"

    assert client.delete(f"/scheduled-emails/{schedule['id']}").status_code == 204


def test_template_preview(client):
    template = client.post(
        "/email-templates/",
        json={"name": "welcome", "type": "onboarding", "subject": "Hi [name]", "body": "<p>{{name}}</p>"},
    ).json()

    preview = client.post(f"/email-templates/{template['id']}/preview", json={"variables": {"name": "Ada"}})

    assert preview.json() == {"subject": "Hi Ada", "body": "<p>Ada</p>"}

    duplicate = client.post(
        "/email-templates/",
        json={"name": "welcome", "type": "onboarding", "subject": "x", "body": "y"},
    )
    assert duplicate.status_code == 409


def test_purchase_pricing_errors_are_bad_requests(client, factory):
    buyer = factory.user()
    bundle = factory.bundle(seat_price="100.00")
    [discount] = client.post(
        "/discounts/",
        json={"bundle_ids": [bundle.id], "seats_percentage": 20, "seats_threshold": 5},
    ).json()

    rejected = client.post(
        "/bundle-purchases/",
        json={"bundle_id": bundle.id, "seats_purchased": 3, "purchased_by": buyer.id, "discount_id": discount["id"]},
    )
    assert rejected.status_code == 400
    assert rejected.json() == {"detail": "Seats purchased must be at least 5 to apply this discount"}

    accepted = client.post(
        "/bundle-purchases/",
        json={"bundle_id": bundle.id, "seats_purchased": 5, "purchased_by": buyer.id, "discount_id": discount["id"]},
    )
    assert accepted.status_code == 201
    assert accepted.json()["total_price"] == "400.00"


def test_discount_deactivation_via_patch(client, factory):
    buyer = factory.user()
    bundle = factory.bundle(seat_price="10.00")
    [discount] = client.post("/discounts/", json={"bundle_ids": [bundle.id], "percentage": 50}).json()
    purchase = client.post(
        "/bundle-purchases/",
        json={"bundle_id": bundle.id, "seats_purchased": 2, "purchased_by": buyer.id, "discount_id": discount["id"]},
    ).json()
    assert purchase["total_price"] == "10.00"

    client.patch(f"/discounts/{discount['id']}", json={"is_active": False})

    repriced = client.get(f"/bundle-purchases/{purchase['id']}").json()
    assert repriced["total_price"] == "20.00"
    assert repriced["discount_id"] is None


def test_simulation_schedule_endpoints(client, factory):
    creator = factory.user()
    bundle = factory.bundle()
    group = factory.group([factory.user()])

    created = client.post(
        "/attack-simulation-schedules/",
        json={
            "name": "Drill",
            "bundle_id": bundle.id,
            "campaign_type": "phishing",
            "group_ids": [group.id],
            "launch_status": "Schedule Later",
            "launch_date": "2026-07-01",
            "launch_time": "14:00",
            "timezone": "UTC",
            "created_by": creator.id,
        },
    )
    assert created.status_code == 201
    body = created.json()
    assert body["group_ids"] == [group.id]
    assert body["launch_time"] == "14:00:00"

    bad_zone = client.patch(f"/attack-simulation-schedules/{body['id']}", json={"timezone": "Mars/Olympus"})
    assert bad_zone.status_code == 400
    assert bad_zone.json() == {"detail": "Invalid timezone"}
