"""Slack Notifier for Hammertime runs.

Posts a summary of each stop/start run to a Slack Incoming Webhook.
A failed post is logged and never fails the run.
"""

import logging
from typing import Any, Optional

import requests

from .models import BatchResult

logger = logging.getLogger(__name__)

MAX_LISTED_GROUPS = 20
# Slack rejects section text over 3000 characters
MAX_ERROR_CHARS = 2900


class SlackNotifier:
    """Send run summaries to Slack via Incoming Webhook."""

    def __init__(self, webhook_url: str, timeout: int = 10):
        """Initialize Slack Notifier.

        Args:
            webhook_url: Slack Incoming Webhook URL
            timeout: HTTP request timeout in seconds (default: 10)

        Raises:
            ValueError: If webhook_url is empty
        """
        if not webhook_url or not webhook_url.strip():
            raise ValueError("webhook_url cannot be empty")

        self.webhook_url = webhook_url.strip()
        self.timeout = timeout

    def send_batch_summary(self, result: BatchResult) -> bool:
        """Send a summary of a completed run.

        Returns:
            True if notification sent successfully, False otherwise
        """
        return self._send_to_slack(self._build_summary_payload(result))

    def send_error_alert(self, operation: str, error_message: str) -> bool:
        """Send an alert for a failed run.

        Args:
            operation: "stop" or "start"
            error_message: Error description

        Returns:
            True if notification sent successfully, False otherwise
        """
        return self._send_to_slack(self._build_error_payload(operation, error_message))

    # =========================================================================
    # Payload builders
    # =========================================================================

    def _build_summary_payload(self, result: BatchResult) -> dict[str, Any]:
        verb = "Stopped" if result.operation == "stop" else "Started"
        prefix = "[DRY-RUN] " if result.dry_run else ""
        title = f"{prefix}Hammertime {result.operation}: {verb} {len(result.groups)} ASG(s)"

        blocks: list[dict[str, Any]] = [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": title},
            },
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*Started:*\n{result.started_at.isoformat()}"},
                    {
                        "type": "mrkdwn",
                        "text": f"*Finished:*\n{_format_time(result.finished_at)}",
                    },
                ],
            },
        ]

        if result.groups:
            listed = result.groups[:MAX_LISTED_GROUPS]
            text = "\n".join(f"• `{name}`" for name in listed)
            if len(result.groups) > MAX_LISTED_GROUPS:
                text += f"\n... and {len(result.groups) - MAX_LISTED_GROUPS} more"
            blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": text}})

        return {"text": title, "blocks": blocks}

    def _build_error_payload(self, operation: str, error_message: str) -> dict[str, Any]:
        title = f"⚠️ Hammertime {operation} failed"
        if len(error_message) > MAX_ERROR_CHARS:
            error_message = error_message[:MAX_ERROR_CHARS] + "... (truncated)"
        return {
            "text": title,
            "blocks": [
                {"type": "header", "text": {"type": "plain_text", "text": title}},
                {
                    "type": "section",
                    "text": {"type": "mrkdwn", "text": f"```{error_message}```"},
                },
            ],
        }

    def _send_to_slack(self, payload: dict[str, Any]) -> bool:
        """Send payload to Slack webhook.

        Args:
            payload: Slack Block Kit payload

        Returns:
            True if sent successfully (HTTP 200), False otherwise
        """
        try:
            response = requests.post(
                self.webhook_url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            logger.info("Slack notification sent successfully")
            return True
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to send Slack notification: {e}")
            return False


def _format_time(value: Optional[Any]) -> str:
    return value.isoformat() if value else "-"
