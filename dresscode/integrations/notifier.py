# Overview: Outbound email through AWS SES, with a logging notifier for development.

from __future__ import annotations

import logging

import boto3


logger = logging.getLogger(__name__)


class SesNotifier:
    """Sends HTML email through AWS SES."""

    def __init__(self, sender: str, region_name: str):
        self.sender = sender
        self.client = boto3.client("ses", region_name=region_name)

    def send_email(self, to: str, subject: str, html_body: str) -> None:
        response = self.client.send_email(
            Source=self.sender,
            Destination={"ToAddresses": [to]},
            Message={
                "Subject": {"Data": subject},
                "Body": {"Html": {"Data": html_body}},
            },
        )
        logger.info("Email sent to %s. MessageId: %s", to, response.get("MessageId"))


class LoggingNotifier:
    """Development notifier: writes the email to the log instead of sending it."""

    def send_email(self, to: str, subject: str, html_body: str) -> None:
        logger.info("EMAIL (development mode) to=%s subject=%s", to, subject)
