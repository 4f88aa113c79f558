"""Outbound email transport."""
from __future__ import annotations

from typing import Optional, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from lms_api.core.config import settings
from lms_api.core.errors import TransportError
from lms_api.utils.logger import logger


class EmailSender(Protocol):
    """Anything that can deliver one HTML email and return a provider message id."""

    def send(self, to: str, subject: str, body: str) -> str:
        ...


class SESEmailSender:
    """Encapsulates the boto3 SES client."""

    def __init__(
        self,
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        region_name: str | None = None,
        sender: str | None = None,
    ) -> None:
        self.aws_access_key_id = aws_access_key_id or settings.aws_access_key_id
        self.aws_secret_access_key = aws_secret_access_key or settings.aws_secret_access_key
        self.region_name = region_name or settings.aws_region_name
        self.sender = sender or settings.ses_sender_email
        self._client = None

    def _client_or_raise(self):
        if self._client is None:
            if not self.region_name:
                raise TransportError("AWS region is required for SES. Set AWS_REGION_NAME in the environment.")

            client_kwargs = {"region_name": self.region_name}
            if self.aws_access_key_id and self.aws_secret_access_key:
                client_kwargs["aws_access_key_id"] = self.aws_access_key_id
                client_kwargs["aws_secret_access_key"] = self.aws_secret_access_key

            self._client = boto3.client("ses", **client_kwargs)
        return self._client

    def send(self, to: str, subject: str, body: str, *, text_body: Optional[str] = None) -> str:
        """Send an HTML email and return the SES message ID."""

        client = self._client_or_raise()
        try:
            response = client.send_email(
                Source=self.sender,
                Destination={"ToAddresses": [to]},
                Message={
                    "Subject": {"Data": subject},
                    "Body": {
                        "Text": {"Data": text_body or body},
                        "Html": {"Data": body},
                    },
                },
            )
        except (BotoCoreError, ClientError) as exc:
            logger.warning("SES send_email to %s failed: %s", to, exc)
            raise TransportError(f"Failed to send email to {to}") from exc

        message_id = response.get("MessageId", "")
        logger.info("SES send_email message_id=%s", message_id)
        return message_id
