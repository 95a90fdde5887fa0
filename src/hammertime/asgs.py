"""ASG selector and mutator.

Lists Auto Scaling Groups, picks the ones to stop or start from their tags,
and applies the tag/resize calls that move a group between the Running and
Stopped states. All state lives in the tags on the group itself.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Optional

import boto3

from .config import Settings
from .models import (
    ORIGINAL_SIZE_TAG,
    RESOURCE_TYPE,
    STOP_TAG,
    AutoScalingGroup,
    GroupSize,
)
from .retry import RetryConfig, call_with_retry
from .tags import is_startable, is_stoppable, value_for_key

logger = logging.getLogger(__name__)


class AsgManager:
    """List, tag, untag and resize Auto Scaling Groups."""

    def __init__(
        self,
        dry_run: bool = False,
        retry_config: Optional[RetryConfig] = None,
        max_workers: Optional[int] = None,
        region: Optional[str] = None,
        client: Any = None,
    ):
        """Initialize ASG Manager.

        Args:
            dry_run: If True, log mutating calls instead of making them (default: False)
            retry_config: Throttling backoff settings (default: 10 retries)
            max_workers: Thread pool size for batches (default: one per ASG)
            region: AWS region for the default client
            client: Pre-built autoscaling client (creates new if None)
        """
        self.dry_run = dry_run
        self.retry_config = retry_config or RetryConfig()
        self.max_workers = max_workers
        self.client = client or boto3.client("autoscaling", region_name=region)

    @classmethod
    def from_settings(cls, settings: Settings) -> "AsgManager":
        """Build a manager from loaded Settings."""
        return cls(
            dry_run=settings.dry_run,
            retry_config=settings.retry_config,
            max_workers=settings.max_workers,
            region=settings.region,
        )

    # =========================================================================
    # Listing
    # =========================================================================

    def get_all_asgs(self, names: Optional[list[str]] = None) -> list[AutoScalingGroup]:
        """Return every ASG in the region, following pagination.

        Args:
            names: Only describe these groups (default: all)

        Returns:
            List of AutoScalingGroup
        """
        params: dict[str, Any] = {}
        if names:
            params["AutoScalingGroupNames"] = names

        paginator = self.client.get_paginator("describe_auto_scaling_groups")

        asgs = []
        for page in paginator.paginate(**params):
            asgs.extend(AutoScalingGroup.from_api(group) for group in page["AutoScalingGroups"])

        logger.info(f"Found {len(asgs)} auto scaling groups")
        return asgs

    def list_target_asgs(
        self, predicate: Callable[[AutoScalingGroup], bool]
    ) -> list[AutoScalingGroup]:
        return [asg for asg in self.get_all_asgs() if predicate(asg)]

    def list_asgs_to_stop(self) -> list[AutoScalingGroup]:
        """ASGs that are running and not excluded."""
        return self.list_target_asgs(is_stoppable)

    def list_asgs_to_start(self) -> list[AutoScalingGroup]:
        """ASGs that hammertime stopped and are not excluded."""
        return self.list_target_asgs(is_startable)

    # =========================================================================
    # Single-group mutations
    # =========================================================================

    def tag_asg(self, asg: AutoScalingGroup) -> AutoScalingGroup:
        """Record the group's current size and mark it stopped.

        Args:
            asg: Group to tag

        Returns:
            The same group

        Raises:
            ClientError: On a non-throttling API error or exhausted retries
        """
        stopped_at = datetime.utcnow().isoformat(timespec="milliseconds") + "Z"
        tags = [
            self._tag_spec(asg, ORIGINAL_SIZE_TAG, asg.size.to_tag_value()),
            self._tag_spec(asg, STOP_TAG, stopped_at),
        ]

        if self.dry_run:
            logger.info(f"DRY-RUN: Would tag {asg.name} with size {asg.size.to_tag_value()}")
            return asg

        call_with_retry(
            lambda: self.client.create_or_update_tags(Tags=tags),
            f"tag {asg.name}",
            self.retry_config,
        )
        logger.info(f"Tagged {asg.name} as stopped at {stopped_at}")
        return asg

    def untag_asg(self, asg: AutoScalingGroup) -> AutoScalingGroup:
        """Remove the stop and original-size tags."""
        tags = [
            {"Key": key, "ResourceId": asg.name, "ResourceType": RESOURCE_TYPE}
            for key in (ORIGINAL_SIZE_TAG, STOP_TAG)
        ]

        if self.dry_run:
            logger.info(f"DRY-RUN: Would untag {asg.name}")
            return asg

        call_with_retry(
            lambda: self.client.delete_tags(Tags=tags),
            f"untag {asg.name}",
            self.retry_config,
        )
        logger.info(f"Untagged {asg.name}")
        return asg

    def spin_down_asg(self, asg: AutoScalingGroup) -> AutoScalingGroup:
        """Set MinSize and DesiredCapacity to zero. MaxSize is left alone."""
        params = {
            "AutoScalingGroupName": asg.name,
            "DesiredCapacity": 0,
            "MinSize": 0,
        }

        if self.dry_run:
            logger.info(f"DRY-RUN: Would spin down {asg.name}")
            return asg

        call_with_retry(
            lambda: self.client.update_auto_scaling_group(**params),
            f"spin down {asg.name}",
            self.retry_config,
        )
        logger.info(f"Spun down {asg.name}")
        return asg

    def spin_up_asg(self, asg: AutoScalingGroup) -> AutoScalingGroup:
        """Restore the size recorded in the originalASGSize tag.

        Raises:
            KeyError: If the group has no originalASGSize tag
            ValueError: If the recorded size is malformed
        """
        original = GroupSize.parse(value_for_key(asg.tags, ORIGINAL_SIZE_TAG))
        params = {
            "AutoScalingGroupName": asg.name,
            "MinSize": original.min_size,
            "MaxSize": original.max_size,
            "DesiredCapacity": original.desired_capacity,
        }

        if self.dry_run:
            logger.info(f"DRY-RUN: Would spin up {asg.name} to {original.to_tag_value()}")
            return asg

        call_with_retry(
            lambda: self.client.update_auto_scaling_group(**params),
            f"spin up {asg.name}",
            self.retry_config,
        )
        logger.info(f"Spun up {asg.name} to {original.to_tag_value()}")
        return asg

    # =========================================================================
    # Batches
    # =========================================================================

    def tag_asgs(self, asgs: list[AutoScalingGroup]) -> list[AutoScalingGroup]:
        return self._run_batch(asgs, self.tag_asg)

    def untag_asgs(self, asgs: list[AutoScalingGroup]) -> list[AutoScalingGroup]:
        return self._run_batch(asgs, self.untag_asg)

    def stop_asgs(self, asgs: list[AutoScalingGroup]) -> list[AutoScalingGroup]:
        return self._run_batch(asgs, self.spin_down_asg)

    def start_asgs(self, asgs: list[AutoScalingGroup]) -> list[AutoScalingGroup]:
        return self._run_batch(asgs, self.spin_up_asg)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _run_batch(
        self,
        asgs: list[AutoScalingGroup],
        action: Callable[[AutoScalingGroup], AutoScalingGroup],
    ) -> list[AutoScalingGroup]:
        """Apply `action` to every group concurrently.

        Results keep input order. The first failure is raised once all
        submitted calls have finished.
        """
        if not asgs:
            return []

        workers = self.max_workers or len(asgs)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(action, asg) for asg in asgs]
            return [future.result() for future in futures]

    def _tag_spec(self, asg: AutoScalingGroup, key: str, value: str) -> dict[str, Any]:
        return {
            "Key": key,
            "Value": value,
            "PropagateAtLaunch": False,
            "ResourceId": asg.name,
            "ResourceType": RESOURCE_TYPE,
        }
