"""
unsurf/__init__.py

Turns a live website into a machine-usable API contract: discover the
endpoints a page calls, replay them directly over HTTP, and heal the
replay when the site changes.
"""

from unsurf.tools.heal import Healer
from unsurf.tools.scout import Scout
from unsurf.tools.worker import Worker

__all__ = [
    "Healer",
    "Scout",
    "Worker",
]
