from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DeclarationTime(BaseModel):
    """One activation window of a feature."""

    model_config = ConfigDict(
        validate_by_name=True,
        validate_by_alias=True,
        frozen=True,
    )

    email: Optional[str] = None
    start: datetime
    end: Optional[datetime] = None


class FeatureDeclaration(BaseModel):
    """When, and by whom, a feature was active.

    Pushed to the FlipFlag API on every sync tick. A new declaration for the
    same feature name replaces the previous one wholesale.
    """

    model_config = ConfigDict(
        validate_by_name=True,
        validate_by_alias=True,
        frozen=True,
    )

    times: List[DeclarationTime] = Field(default_factory=list)


class FeatureFlag(BaseModel):
    model_config = ConfigDict(
        validate_by_name=True,
        validate_by_alias=True,
        extra="allow",
        frozen=True,
    )

    enabled: bool = False


class FeatureUsage(BaseModel):
    model_config = ConfigDict(
        validate_by_name=True,
        validate_by_alias=True,
    )

    feature_name: str = Field(alias="featureName")
    used_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="usedAt"
    )


class ManagerState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    RUNNING = "running"
    DESTROYED = "destroyed"
