"""
unsurf/data_models/path.py

ScoutedPath: the navigation steps of one discovery session plus the
endpoints it surfaced.

Status transitions (driven by the heal tool only):
    active -> broken -> healing -> active | broken
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from unsurf.data_models.ids import generate_id, utc_now


class PathStatus(StrEnum):
    """Health of a scouted path."""
    ACTIVE = "active"     # Replays are expected to work
    BROKEN = "broken"     # Retries exhausted or heal failed
    HEALING = "healing"   # Re-discovery in progress


class PathStepAction(StrEnum):
    """Browser action recorded for a path step."""
    NAVIGATE = "navigate"
    CLICK = "click"
    FILL = "fill"
    SUBMIT = "submit"
    WAIT = "wait"


class PathStep(BaseModel):
    """One navigation step."""
    action: PathStepAction
    selector: str | None = Field(default=None)
    value: str | None = Field(default=None)
    url: str | None = Field(default=None)


class ScoutedPath(BaseModel):
    """A persisted discovery session."""
    id: str = Field(default_factory=lambda: generate_id("path"))
    site_id: str
    task: str = Field(description="Task description the discovery was run for")
    steps: list[PathStep] = Field(default_factory=list)
    endpoint_ids: list[str] = Field(default_factory=list)
    status: PathStatus = Field(default=PathStatus.ACTIVE)
    created_at: datetime = Field(default_factory=utc_now)
    last_used_at: datetime | None = Field(default=None)
    fail_count: int = Field(default=0)
    heal_count: int = Field(default=0)
