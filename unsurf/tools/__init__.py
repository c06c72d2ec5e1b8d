"""
unsurf/tools

Discovery (Scout), replay (Worker) and recovery (Healer) orchestrators.
"""

from unsurf.tools.heal import Healer
from unsurf.tools.scout import Scout
from unsurf.tools.worker import Worker

__all__ = [
    "Healer",
    "Scout",
    "Worker",
]
