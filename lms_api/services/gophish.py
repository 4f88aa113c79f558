"""GoPhish REST client used to launch phishing-simulation campaigns."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from lms_api.core.config import settings
from lms_api.core.errors import TransportError
from lms_api.utils.logger import logger


@dataclass
class CampaignRequest:
    name: str
    template: str
    url: str
    page: str
    smtp: str
    launch_date: str
    groups: list[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "template": {"name": self.template},
            "url": self.url,
            "page": {"name": self.page},
            "smtp": {"name": self.smtp},
            "launch_date": self.launch_date,
            "groups": [{"name": name} for name in self.groups],
        }


class CampaignLauncher(Protocol):
    def launch(self, request: CampaignRequest) -> str:
        """Create the campaign remotely and return its id."""
        ...


class GoPhishLauncher:
    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout_seconds: float | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.gophish_base_url).rstrip("/")
        self.api_key = api_key or settings.gophish_api_key
        self.timeout_seconds = timeout_seconds or settings.gophish_timeout_seconds
        self._transport = transport

    def launch(self, request: CampaignRequest) -> str:
        if not self.api_key:
            raise TransportError("GoPhish API key is not configured. Set GOPHISH_API_KEY in the environment.")

        try:
            with httpx.Client(transport=self._transport, timeout=self.timeout_seconds) as client:
                response = client.post(
                    f"{self.base_url}/api/campaigns/",
                    params={"api_key": self.api_key},
                    json=request.to_payload(),
                )
        except httpx.HTTPError as exc:
            logger.warning("GoPhish request for %r failed: %s", request.name, exc)
            raise TransportError(f"GoPhish request failed for campaign {request.name!r}") from exc

        if response.status_code != httpx.codes.CREATED:
            raise TransportError(
                f"GoPhish rejected campaign {request.name!r} with status {response.status_code}"
            )
        campaign_id = response.json().get("id")
        if not campaign_id:
            raise TransportError(f"GoPhish response for campaign {request.name!r} has no id")

        logger.info("GoPhish campaign %s launched: %s", campaign_id, request.name)
        return str(campaign_id)
