"""
unsurf/data_models/run.py

RunRecord: audit entry written for every scout, worker and heal attempt.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from unsurf.data_models.ids import generate_id, utc_now


class RunTool(StrEnum):
    """Tool that produced a run."""
    SCOUT = "scout"
    WORKER = "worker"
    HEAL = "heal"


class RunStatus(StrEnum):
    """Outcome of a run."""
    SUCCESS = "success"
    FAILURE = "failure"


class RunRecord(BaseModel):
    """One audit record."""
    id: str = Field(default_factory=lambda: generate_id("run"))
    path_id: str
    tool: RunTool
    status: RunStatus
    input: str = Field(description="JSON-encoded tool input")
    output: str | None = Field(default=None, description="JSON-encoded tool output")
    error: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
