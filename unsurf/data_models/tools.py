"""
unsurf/data_models/tools.py

Inputs and results of the scout, worker and heal tools.
"""

from typing import Any

from pydantic import BaseModel, Field


class ScoutInput(BaseModel):
    """Discovery request."""
    url: str
    task: str
    publish: bool | None = Field(
        default=None,
        description="True also publishes to the directory; False skips the gallery",
    )


class ScoutResult(BaseModel):
    """Discovery outcome."""
    site_id: str
    endpoint_count: int
    path_id: str
    open_api_spec: dict[str, Any]
    from_gallery: bool | None = Field(default=None)


class WorkerInput(BaseModel):
    """Replay request."""
    path_id: str
    data: dict[str, Any] | None = Field(default=None)
    headers: dict[str, str] | None = Field(default=None)


class WorkerResult(BaseModel):
    """Replay outcome."""
    success: bool
    response: Any = Field(default=None)


class HealInput(BaseModel):
    """Heal request."""
    path_id: str
    error: str | None = Field(default=None, description="Error context from the failing caller")


class HealResult(BaseModel):
    """Heal outcome."""
    healed: bool
    new_path_id: str | None = Field(default=None)
