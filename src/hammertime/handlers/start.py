"""Start Handler

Restores every ASG that the stop run paused. Triggered by an EventBridge
schedule at the start of business hours.
"""

import json
import logging
import os
from datetime import datetime
from typing import Any

from ..asgs import AsgManager
from ..config import configure_logging, load_settings
from ..models import BatchResult
from ..notifier_slack import SlackNotifier


logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO"))


def start_hammertime(manager: AsgManager) -> BatchResult:
    """List, spin up and untag startable ASGs.

    Tags are removed only after the resize succeeds, so a failed run is
    picked up again by the next one.

    Args:
        manager: ASG manager to act through

    Returns:
        BatchResult naming the started groups
    """
    started_at = datetime.utcnow()

    asgs = manager.list_asgs_to_start()
    logger.info(f"Starting {len(asgs)} ASGs: {[asg.name for asg in asgs]}")

    started = manager.start_asgs(asgs)
    untagged = manager.untag_asgs(started)

    result = BatchResult(
        operation="start",
        dry_run=manager.dry_run,
        groups=[asg.name for asg in untagged],
        started_at=started_at,
        finished_at=datetime.utcnow(),
    )
    logger.info(f"Start run completed: {len(result.groups)} ASGs started")
    return result


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """AWS Lambda handler for the start run.

    Same environment variables as the stop handler.
    """
    logger.info(f"Start triggered: {json.dumps(event)}")

    notifier = None
    try:
        settings = load_settings()
        configure_logging(settings.log_level)
        if settings.slack_webhook_url:
            notifier = SlackNotifier(webhook_url=settings.slack_webhook_url)

        result = start_hammertime(AsgManager.from_settings(settings))

        if notifier:
            notifier.send_batch_summary(result)

        return {
            "statusCode": 200,
            "body": json.dumps(
                {
                    "status": "success",
                    "result": result.model_dump(mode="json"),
                }
            ),
        }

    except Exception as e:
        logger.exception(f"Start handler failed: {e}")

        if notifier:
            notifier.send_error_alert("start", str(e))

        return {
            "statusCode": 500,
            "body": json.dumps(
                {
                    "status": "error",
                    "error": str(e),
                }
            ),
        }
