"""Tests for the GoPhish campaign client."""
from __future__ import annotations

import json

import httpx
import pytest

from lms_api.core.errors import TransportError
from lms_api.services.gophish import CampaignRequest, GoPhishLauncher

REQUEST = CampaignRequest(
    name="Invoice Phish - Q1 Drill - Groups: Sales",
    template="Invoice Template",
    url="https://phish.example.com",
    page="Login Page",
    smtp="Default SMTP",
    launch_date="2026-03-01T08:30:00+00:00",
    groups=["Sales"],
)


def _launcher(handler, api_key="secret"):
    return GoPhishLauncher(
        "https://gophish.local:3333/",
        api_key,
        5,
        transport=httpx.MockTransport(handler),
    )


def test_launch_posts_campaign_and_returns_id():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"id": 42})

    campaign_id = _launcher(handler).launch(REQUEST)

    assert campaign_id == "42"
    assert seen["url"] == "https://gophish.local:3333/api/campaigns/?api_key=secret"
    assert seen["body"] == {
        "name": REQUEST.name,
        "template": {"name": "Invoice Template"},
        "url": "https://phish.example.com",
        "page": {"name": "Login Page"},
        "smtp": {"name": "Default SMTP"},
        "launch_date": "2026-03-01T08:30:00+00:00",
        "groups": [{"name": "Sales"}],
    }


def test_non_created_status_raises_transport_error():
    launcher = _launcher(lambda request: httpx.Response(400, json={"message": "bad template"}))

    with pytest.raises(TransportError):
        launcher.launch(REQUEST)


def test_response_without_id_raises_transport_error():
    launcher = _launcher(lambda request: httpx.Response(201, json={}))

    with pytest.raises(TransportError):
        launcher.launch(REQUEST)


def test_connection_error_raises_transport_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TransportError) as excinfo:
        _launcher(handler).launch(REQUEST)
    assert excinfo.value.status_code == 502


def test_missing_api_key_raises_before_any_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(201, json={"id": 1})

    launcher = _launcher(handler, api_key=None)
    launcher.api_key = None

    with pytest.raises(TransportError):
        launcher.launch(REQUEST)
    assert calls == []
