"""
unsurf/endpoint_discovery/classifier.py

Network event classification.

Filters captured traffic down to genuine API calls and groups them by
(method, normalized URL pattern), preserving first-seen order.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from urllib.parse import urlsplit

from unsurf.data_models.endpoint import HTTPMethod
from unsurf.data_models.network_event import NetworkEvent
from unsurf.utils.logger import get_logger
from unsurf.utils.url_utils import normalize_url_pattern

logger = get_logger(name=__name__)

# Resource kinds reported by the browser for programmatic requests
_API_RESOURCE_TYPES = {"xhr", "fetch"}

_STATIC_ASSET_SUFFIXES = (
    # images
    ".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".ico", ".bmp", ".avif",
    # fonts
    ".woff", ".woff2", ".ttf", ".otf", ".eot",
    # styles
    ".css",
    # scripts
    ".js", ".mjs", ".map",
)

_HTTP_METHODS = {method.value for method in HTTPMethod}


@dataclass
class EndpointGroup:
    """Events sharing one (method, pattern) key, in encounter order."""
    method: HTTPMethod
    pattern: str
    events: list[NetworkEvent] = field(default_factory=list)

    @property
    def key(self) -> str:
        return f"{self.method.value} {self.pattern}"


def is_api_request(resource_type: str, url: str) -> bool:
    """
    Check whether a captured request looks like an API call.

    Args:
        resource_type: Browser resource kind (case-insensitive).
        url: Request URL.

    Returns:
        True for fetch/XHR requests whose path is not a static asset.
    """
    if (resource_type or "").lower() not in _API_RESOURCE_TYPES:
        return False
    try:
        path = urlsplit(url).path.lower()
    except ValueError:
        return False
    return not path.endswith(_STATIC_ASSET_SUFFIXES)


def group_by_endpoint(
    events: Iterable[NetworkEvent],
    predicate: Callable[[str, str], bool] = is_api_request,
) -> dict[str, EndpointGroup]:
    """
    Group API events by "METHOD pattern".

    Events rejected by the predicate, with a non-standard method, or with a
    malformed URL are skipped. Never raises for bad entries.

    Args:
        events: Captured network events.
        predicate: is_api_request-style filter over (resource_type, url).

    Returns:
        Insertion-ordered mapping of key to EndpointGroup.
    """
    groups: dict[str, EndpointGroup] = {}
    skipped = 0

    for event in events:
        if not predicate(event.resource_type, event.url):
            skipped += 1
            continue

        method = (event.method or "").upper()
        if method not in _HTTP_METHODS:
            skipped += 1
            continue

        try:
            pattern = normalize_url_pattern(event.url)
        except ValueError:
            logger.debug("Skipping malformed URL: %s", event.url)
            skipped += 1
            continue

        key = f"{method} {pattern}"
        group = groups.get(key)
        if group is None:
            group = EndpointGroup(method=HTTPMethod(method), pattern=pattern)
            groups[key] = group
        group.events.append(event)

    logger.info("Grouped %d API events into %d endpoints (%d skipped)",
                sum(len(g.events) for g in groups.values()), len(groups), skipped)
    return groups
