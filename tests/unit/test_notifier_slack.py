"""Tests for Slack Notifier."""

from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest
import requests

from src.hammertime.models import BatchResult
from src.hammertime.notifier_slack import MAX_LISTED_GROUPS, SlackNotifier

WEBHOOK = "https://hooks.slack.com/services/xxx"


@pytest.fixture
def notifier():
    return SlackNotifier(WEBHOOK)


@pytest.fixture
def stop_result():
    started = datetime(2025, 1, 15, 9, 0, 0)
    return BatchResult(
        operation="stop",
        groups=["web-asg", "worker-asg"],
        started_at=started,
        finished_at=started + timedelta(seconds=4),
    )


class TestSlackNotifierInit:
    """Test SlackNotifier initialization."""

    def test_valid_init(self):
        """Test valid initialization."""
        notifier = SlackNotifier(WEBHOOK)
        assert notifier.webhook_url == WEBHOOK
        assert notifier.timeout == 10

    def test_init_with_empty_url(self):
        """Test initialization with empty webhook URL."""
        with pytest.raises(ValueError, match="webhook_url cannot be empty"):
            SlackNotifier("   ")

    def test_init_strips_whitespace(self):
        """Test that webhook URL is stripped of whitespace."""
        assert SlackNotifier(f"  {WEBHOOK}  ").webhook_url == WEBHOOK


class TestSendBatchSummary:
    """Test run summary notifications."""

    def test_send_success(self, notifier, stop_result):
        """Test summary is posted to the webhook."""
        with patch("requests.post") as mock_post:
            mock_post.return_value = MagicMock(status_code=200)

            assert notifier.send_batch_summary(stop_result) is True

            mock_post.assert_called_once()
            assert mock_post.call_args.args[0] == WEBHOOK
            assert mock_post.call_args.kwargs["timeout"] == 10
            payload = mock_post.call_args.kwargs["json"]
            assert payload["text"] == "Hammertime stop: Stopped 2 ASG(s)"
            assert "`web-asg`" in payload["blocks"][-1]["text"]["text"]

    def test_dry_run_prefix(self, notifier):
        """Test dry-run runs are marked."""
        result = BatchResult(operation="start", dry_run=True, started_at=datetime.utcnow())
        payload = notifier._build_summary_payload(result)

        assert payload["text"] == "[DRY-RUN] Hammertime start: Started 0 ASG(s)"
        # No group list block when nothing was touched
        assert len(payload["blocks"]) == 2

    def test_long_group_list_truncated(self, notifier):
        """Test long group lists are truncated."""
        result = BatchResult(
            operation="stop",
            groups=[f"asg-{i}" for i in range(MAX_LISTED_GROUPS + 5)],
            started_at=datetime.utcnow(),
        )
        text = notifier._build_summary_payload(result)["blocks"][-1]["text"]["text"]

        assert "... and 5 more" in text
        assert f"asg-{MAX_LISTED_GROUPS}`" not in text

    def test_send_failure(self, notifier, stop_result):
        """Test HTTP errors are reported as False."""
        with patch("requests.post") as mock_post:
            mock_post.side_effect = requests.exceptions.ConnectionError("down")
            assert notifier.send_batch_summary(stop_result) is False


class TestSendErrorAlert:
    """Test error notifications."""

    def test_send_error_alert(self, notifier):
        """Test error alert payload."""
        with patch("requests.post") as mock_post:
            mock_post.return_value = MagicMock(status_code=200)

            assert notifier.send_error_alert("start", "Rate exceeded") is True

            payload = mock_post.call_args.kwargs["json"]
            assert "Hammertime start failed" in payload["text"]
            assert "Rate exceeded" in payload["blocks"][1]["text"]["text"]

    def test_long_error_truncated(self, notifier):
        """Test long errors stay under Slack's section text limit."""
        payload = notifier._build_error_payload("stop", "x" * 10000)
        text = payload["blocks"][1]["text"]["text"]

        assert len(text) < 3000
        assert text.endswith("... (truncated)```")

    def test_short_error_unchanged(self, notifier):
        """Test short errors are sent as-is."""
        payload = notifier._build_error_payload("stop", "Rate exceeded")
        assert payload["blocks"][1]["text"]["text"] == "```Rate exceeded```"

    def test_http_error_status(self, notifier):
        """Test non-2xx responses are reported as False."""
        with patch("requests.post") as mock_post:
            response = MagicMock()
            response.raise_for_status.side_effect = requests.exceptions.HTTPError("500")
            mock_post.return_value = response

            assert notifier.send_error_alert("stop", "boom") is False
