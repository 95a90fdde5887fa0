"""
Tag classification for Hammertime.

Decides which ASGs can be stopped or started and resolves the operating
timezone. Pure functions over tag lists - no AWS calls.
"""

import logging

from .models import (
    EXCLUDE_TAG,
    HAMMERTIME_TAG_PREFIX,
    STOP_TAG,
    TIMEZONE_TAG,
    AutoScalingGroup,
    Tag,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = 10


def has_tag(tags: list[Tag], key: str) -> bool:
    """Return True if any tag has exactly this key."""
    return any(tag.key == key for tag in tags)


def value_for_key(tags: list[Tag], key: str) -> str:
    """Return the value of the first tag with this key.

    Raises:
        KeyError: If no tag has the key
    """
    for tag in tags:
        if tag.key == key:
            return tag.value
    raise KeyError(key)


def case_invariant_equals(a: str, b: str) -> bool:
    return a.lower() == b.lower()


def get_hammertime_tags(tags: list[Tag]) -> list[Tag]:
    """Return the tags in the hammertime: namespace."""
    return [tag for tag in tags if tag.key.lower().startswith(HAMMERTIME_TAG_PREFIX)]


def _log_tag_state(asg: AutoScalingGroup) -> None:
    logger.info(
        f"Looking at {asg.name}, {STOP_TAG} tag is {has_tag(asg.tags, STOP_TAG)}, "
        f"{EXCLUDE_TAG} is {has_tag(asg.tags, EXCLUDE_TAG)}"
    )


def is_stoppable(asg: AutoScalingGroup) -> bool:
    """
    Check if an ASG should be stopped.

    Stoppable means not already stopped and not excluded.

    Args:
        asg: The group to classify

    Returns:
        True if neither stop:hammertime nor hammertime:canttouchthis is set
    """
    _log_tag_state(asg)
    return not has_tag(asg.tags, STOP_TAG) and not has_tag(asg.tags, EXCLUDE_TAG)


def is_startable(asg: AutoScalingGroup) -> bool:
    """
    Check if an ASG should be started.

    Args:
        asg: The group to classify

    Returns:
        True if stop:hammertime is set and hammertime:canttouchthis is not
    """
    _log_tag_state(asg)
    return has_tag(asg.tags, STOP_TAG) and not has_tag(asg.tags, EXCLUDE_TAG)


def operating_timezone(tags: list[Tag], default: int = DEFAULT_TIMEZONE) -> int:
    """
    Resolve the UTC offset an ASG operates in.

    Args:
        tags: Tags of the ASG
        default: Offset used when the tag is missing or ambiguous

    Returns:
        Offset in hours from the single hammertime:operatingTimezone tag,
        or the default if there is none or more than one

    Raises:
        ValueError: If the tag value is not an integer
    """
    timezone_tags = [
        tag for tag in get_hammertime_tags(tags) if case_invariant_equals(tag.key, TIMEZONE_TAG)
    ]

    if len(timezone_tags) != 1:
        logger.info(
            f"No timezone tag found or multiple timezone tags found. Defaulting to {default:+d}"
        )
        return default

    return int(timezone_tags[0].value)
