"""
Data models for Hammertime.

All models use Pydantic for validation and serialization.
Auto Scaling API responses are normalised into these models before any
classification or mutation happens.
"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator


# ============================================================================
# Tag Keys
# ============================================================================

STOP_TAG = "stop:hammertime"
EXCLUDE_TAG = "hammertime:canttouchthis"
ORIGINAL_SIZE_TAG = "hammertime:originalASGSize"
TIMEZONE_TAG = "hammertime:operatingTimezone"

HAMMERTIME_TAG_PREFIX = "hammertime:"
RESOURCE_TYPE = "auto-scaling-group"


# ============================================================================
# Auto Scaling Group Models
# ============================================================================


class Tag(BaseModel):
    """A Key/Value tag attached to an Auto Scaling Group."""

    key: str = Field(..., description="Tag key")
    value: str = Field(default="", description="Tag value")
    resource_id: Optional[str] = Field(default=None, description="ASG name")
    resource_type: Optional[str] = Field(default=None, description="Always auto-scaling-group")
    propagate_at_launch: Optional[bool] = Field(
        default=None, description="Whether instances inherit the tag"
    )

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Tag":
        """Build a Tag from the Auto Scaling API shape."""
        return cls(
            key=data["Key"],
            value=data.get("Value", ""),
            resource_id=data.get("ResourceId"),
            resource_type=data.get("ResourceType"),
            propagate_at_launch=data.get("PropagateAtLaunch"),
        )


class GroupSize(BaseModel):
    """
    Capacity of an ASG as recorded in the originalASGSize tag.

    Serialised as "min,max,desired".
    """

    min_size: int = Field(..., ge=0)
    max_size: int = Field(..., ge=0)
    desired_capacity: int = Field(..., ge=0)

    @classmethod
    def parse(cls, value: str) -> "GroupSize":
        """Parse a "min,max,desired" tag value.

        Raises:
            ValueError: If the value does not hold three integers
        """
        parts = [part.strip() for part in value.split(",")]
        if len(parts) != 3:
            raise ValueError(f"Invalid ASG size tag value: {value!r}")

        try:
            min_size, max_size, desired = (int(part) for part in parts)
        except ValueError:
            raise ValueError(f"Invalid ASG size tag value: {value!r}") from None

        return cls(min_size=min_size, max_size=max_size, desired_capacity=desired)

    def to_tag_value(self) -> str:
        return f"{self.min_size},{self.max_size},{self.desired_capacity}"


class AutoScalingGroup(BaseModel):
    """
    An Auto Scaling Group as seen by Hammertime.

    Only the attributes needed for stop/start decisions are kept.
    """

    name: str = Field(..., description="AutoScalingGroupName")
    min_size: int = Field(..., ge=0)
    max_size: int = Field(..., ge=0)
    desired_capacity: int = Field(..., ge=0)
    tags: list[Tag] = Field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "AutoScalingGroup":
        """Build from one entry of a DescribeAutoScalingGroups response."""
        return cls(
            name=data["AutoScalingGroupName"],
            min_size=data["MinSize"],
            max_size=data["MaxSize"],
            desired_capacity=data["DesiredCapacity"],
            tags=[Tag.from_api(tag) for tag in data.get("Tags", [])],
        )

    @property
    def size(self) -> GroupSize:
        """Current capacity of the group."""
        return GroupSize(
            min_size=self.min_size,
            max_size=self.max_size,
            desired_capacity=self.desired_capacity,
        )


# ============================================================================
# Run Result Models
# ============================================================================


class BatchResult(BaseModel):
    """
    Outcome of a stop or start run.

    Returned by the handlers and used for Slack summaries.
    """

    operation: Literal["stop", "start"] = Field(..., description="Which run this was")
    dry_run: bool = Field(default=False)
    groups: list[str] = Field(default_factory=list, description="ASG names acted on")
    started_at: datetime = Field(..., description="When the run started (UTC)")
    finished_at: Optional[datetime] = Field(default=None)

    @field_validator("groups")
    @classmethod
    def validate_groups(cls, v: list[str]) -> list[str]:
        """ASG names must be non-empty."""
        for name in v:
            if not name:
                raise ValueError("ASG name cannot be empty")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "operation": "stop",
                "dry_run": False,
                "groups": ["web-asg", "worker-asg"],
                "started_at": "2025-01-15T09:00:00Z",
                "finished_at": "2025-01-15T09:00:04Z",
            }
        }
