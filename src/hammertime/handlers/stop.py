"""Stop Handler

Stops every running, non-excluded ASG. Triggered by an EventBridge schedule
at the end of business hours.

Each ASG is tagged with its current size before its capacity is zeroed, so
a failed spin-down leaves a group that the start run will still restore.
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


def stop_hammertime(manager: AsgManager) -> BatchResult:
    """List, tag and spin down stoppable ASGs.

    Args:
        manager: ASG manager to act through

    Returns:
        BatchResult naming the stopped groups

    Raises:
        ClientError: If any tag or resize call fails (non-throttling)
    """
    started_at = datetime.utcnow()

    asgs = manager.list_asgs_to_stop()
    logger.info(f"Stopping {len(asgs)} ASGs: {[asg.name for asg in asgs]}")

    tagged = manager.tag_asgs(asgs)
    stopped = manager.stop_asgs(tagged)

    result = BatchResult(
        operation="stop",
        dry_run=manager.dry_run,
        groups=[asg.name for asg in stopped],
        started_at=started_at,
        finished_at=datetime.utcnow(),
    )
    logger.info(f"Stop run completed: {len(result.groups)} ASGs stopped")
    return result


# Lambda handler (EventBridge integration)
def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """AWS Lambda handler for the stop run.

    Args:
        event: EventBridge scheduled event
        context: Lambda context

    Returns:
        Lambda response with the run result

    Environment Variables:
        DRY_RUN: If "true", log changes without making them (default: false)
        SLACK_WEBHOOK_URL: Slack Incoming Webhook URL (optional)
        HAMMERTIME_CONFIG: Path to a YAML settings file (optional)
    """
    logger.info(f"Stop triggered: {json.dumps(event)}")

    notifier = None
    try:
        settings = load_settings()
        configure_logging(settings.log_level)
        if settings.slack_webhook_url:
            notifier = SlackNotifier(webhook_url=settings.slack_webhook_url)

        result = stop_hammertime(AsgManager.from_settings(settings))

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
        logger.exception(f"Stop handler failed: {e}")

        if notifier:
            notifier.send_error_alert("stop", str(e))

        return {
            "statusCode": 500,
            "body": json.dumps(
                {
                    "status": "error",
                    "error": str(e),
                }
            ),
        }
