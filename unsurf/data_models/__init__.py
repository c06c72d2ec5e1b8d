"""
unsurf/data_models

Data models for discovery, replay and heal: captured traffic, endpoints,
sites, scouted paths, audit runs, and tool inputs/results.
"""

from unsurf.data_models.endpoint import CapturedEndpoint, HTTPMethod
from unsurf.data_models.gallery import Fingerprint, GalleryEntry
from unsurf.data_models.ids import generate_id, utc_now
from unsurf.data_models.network_event import NetworkEvent
from unsurf.data_models.path import PathStatus, PathStep, PathStepAction, ScoutedPath
from unsurf.data_models.run import RunRecord, RunStatus, RunTool
from unsurf.data_models.site import Site
from unsurf.data_models.tools import (
    HealInput,
    HealResult,
    ScoutInput,
    ScoutResult,
    WorkerInput,
    WorkerResult,
)

__all__ = [
    "CapturedEndpoint",
    "Fingerprint",
    "GalleryEntry",
    "generate_id",
    "HealInput",
    "HealResult",
    "HTTPMethod",
    "NetworkEvent",
    "PathStatus",
    "PathStep",
    "PathStepAction",
    "RunRecord",
    "RunStatus",
    "RunTool",
    "ScoutedPath",
    "ScoutInput",
    "ScoutResult",
    "Site",
    "utc_now",
    "WorkerInput",
    "WorkerResult",
]
