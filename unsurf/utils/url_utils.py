"""
unsurf/utils/url_utils.py

URL helpers shared by discovery and replay.

Contains:
- normalize_url_pattern: Collapse a concrete URL into a stable endpoint pattern
- extract_domain: Hostname of a URL
- path_param_names: Placeholder names of a pattern
- resolve_path_pattern: Substitute :name placeholders with concrete values
"""

import re
from typing import Any
from urllib.parse import urlsplit

PLACEHOLDER = ":id"

# Volatile segment matchers, checked in order
_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)
_NUMERIC_RE = re.compile(r"^[0-9]+$")
_BASE64_RE = re.compile(r"^[A-Za-z0-9+/=]{16,}$")
_HEX_RE = re.compile(r"^[0-9a-f]{8,}$", re.IGNORECASE)
_VOLATILE_SEGMENT_RES = (_UUID_RE, _NUMERIC_RE, _BASE64_RE, _HEX_RE)

# Matches :name placeholders in a path pattern (ports like :8080 never match)
PATH_PARAM_RE = re.compile(r":([a-zA-Z_][a-zA-Z0-9_]*)")

_DEFAULT_PORTS = {"http": 80, "https": 443}


def _origin(url: str) -> str:
    """
    Return scheme://host[:port] for an absolute URL.
    Raises ValueError if the URL has no scheme or host.
    """
    parts = urlsplit(url)
    if not parts.scheme or not parts.hostname:
        raise ValueError(f"Not an absolute URL: {url!r}")
    scheme = parts.scheme.lower()
    host = parts.hostname
    if ":" in host:
        host = f"[{host}]"  # IPv6 literal
    port = parts.port  # raises ValueError on a malformed port
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        return f"{scheme}://{host}:{port}"
    return f"{scheme}://{host}"


def _normalize_segment(segment: str) -> str:
    if not segment:
        return segment
    for pattern in _VOLATILE_SEGMENT_RES:
        if pattern.match(segment):
            return PLACEHOLDER
    return segment


def normalize_url_pattern(url: str) -> str:
    """
    Collapse a concrete URL into a stable endpoint pattern.

    Volatile path segments (UUIDs, numeric ids, long base64 tokens, long hex
    tokens) become ":id". The query string and fragment are dropped; the
    origin is kept so identical paths on different hosts never collide.

    Args:
        url: Absolute http(s) URL.

    Returns:
        Pattern like "https://api.example.com/users/:id".

    Raises:
        ValueError: If the URL is malformed.
    """
    origin = _origin(url)
    path = urlsplit(url).path or "/"
    segments = [_normalize_segment(segment) for segment in path.split("/")]
    return origin + "/".join(segments)


def extract_domain(url: str) -> str:
    """
    Return the hostname of a URL.

    Raises:
        ValueError: If the URL has no host.
    """
    hostname = urlsplit(url).hostname
    if not hostname:
        raise ValueError(f"Cannot extract domain from {url!r}")
    return hostname


def path_param_names(pattern: str) -> list[str]:
    """Names of the :name placeholders in a pattern, in order of appearance."""
    return PATH_PARAM_RE.findall(pattern)


def resolve_path_pattern(pattern: str, data: dict[str, Any] | None) -> str:
    """
    Substitute :name placeholders with matching keys from data.
    Unmatched placeholders are left as-is.
    """
    if not data:
        return pattern

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in data and data[name] is not None:
            return str(data[name])
        return match.group(0)

    return PATH_PARAM_RE.sub(_replace, pattern)
