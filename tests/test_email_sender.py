"""Tests for the SES sender and the RQ worker helpers."""
from __future__ import annotations

import pytest
from botocore.exceptions import ClientError

from lms_api.core.errors import NotFoundError, TransportError
from lms_api.queue import worker
from lms_api.services.email_sender import SESEmailSender


class StubSESClient:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls = []

    def send_email(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return {"MessageId": "ses-123"}


def _sender(client):
    sender = SESEmailSender(region_name="eu-west-1", sender="lms@example.com")
    sender._client = client
    return sender


def test_send_builds_ses_message():
    client = StubSESClient()

    message_id = _sender(client).send("ada@example.com", "Hello", "<p>Hi</p>")

    assert message_id == "ses-123"
    [call] = client.calls
    assert call["Source"] == "lms@example.com"
    assert call["Destination"] == {"ToAddresses": ["ada@example.com"]}
    assert call["Message"]["Subject"] == {"Data": "Hello"}
    assert call["Message"]["Body"]["Html"] == {"Data": "<p>Hi</p>"}


def test_send_wraps_client_errors():
    error = ClientError({"Error": {"Code": "MessageRejected", "Message": "nope"}}, "SendEmail")

    with pytest.raises(TransportError):
        _sender(StubSESClient(error)).send("ada@example.com", "Hello", "<p>Hi</p>")


def test_enqueue_rejects_unknown_job_without_redis():
    with pytest.raises(NotFoundError):
        worker.enqueue_job("unknown")


def test_enqueue_uses_configured_queue(monkeypatch):
    enqueued = []

    class StubQueue:
        def enqueue(self, func, *args):
            enqueued.append((func, args))
            return "job"

    monkeypatch.setattr(worker, "_get_queue", lambda: StubQueue())

    assert worker.enqueue_job("token-cleanup") == "job"
    assert enqueued == [(worker.run_job, ("token-cleanup",))]


def test_run_job_triggers_named_job(monkeypatch):
    class StubScheduler:
        def trigger(self, name):
            return {"job": name}

    monkeypatch.setattr(worker, "build_runtime", lambda: StubScheduler())

    assert worker.run_job("scheduled-emails") == {"job": "scheduled-emails"}
