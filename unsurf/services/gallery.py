"""
unsurf/services/gallery.py

Gallery: optional cache of previous discoveries, keyed by domain.

Scout consults the gallery before browsing; a hit lets it rebuild endpoints
from the cached OpenAPI document instead of opening a browser.
"""

import json
from abc import ABC, abstractmethod
from typing import Any

from unsurf.data_models.endpoint import CapturedEndpoint
from unsurf.data_models.gallery import GalleryEntry
from unsurf.data_models.ids import generate_id, utc_now
from unsurf.services.store import AbstractStore
from unsurf.utils.exceptions import NotFoundError, PersistenceError
from unsurf.utils.logger import get_logger

logger = get_logger(name=__name__)

MAX_SEARCH_LIMIT = 50


def spec_key_for(site_id: str) -> str:
    """Blob key of a site's OpenAPI document."""
    return f"specs/{site_id}/openapi.json"


def summarize_endpoints(endpoints: list[CapturedEndpoint]) -> str:
    """Comma-separated "METHOD pattern" list."""
    return ", ".join(f"{endpoint.method.value} {endpoint.path_pattern}" for endpoint in endpoints)


def encode_spec(spec: dict[str, Any]) -> bytes:
    """Serialized form of an OpenAPI document as stored in blobs."""
    return json.dumps(spec, indent=2).encode("utf-8")


async def load_spec_blob(store: AbstractStore, key: str, owner_id: str) -> dict[str, Any]:
    """
    Read and decode a stored OpenAPI document.

    Raises:
        NotFoundError: If no blob exists under key.
        PersistenceError: If the blob is not valid JSON.
    """
    blob = await store.get_blob(key)
    if blob is None:
        raise NotFoundError(id=owner_id, resource="spec")
    try:
        return json.loads(blob.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise PersistenceError(f"Stored spec {key} is not valid JSON: {e}", cause=e) from e


class AbstractGallery(ABC):
    """
    Interface for the discovery cache.
    """

    @abstractmethod
    async def get_by_domain(self, domain: str) -> GalleryEntry | None:
        """Entry for a domain, or None on a miss."""
        ...

    @abstractmethod
    async def get_spec(self, gallery_id: str) -> dict[str, Any]:
        """OpenAPI document of an entry. Raises NotFoundError if missing."""
        ...

    @abstractmethod
    async def publish(self, site_id: str, contributor: str = "anonymous") -> GalleryEntry:
        """Register or refresh the entry for a site's domain."""
        ...

    @abstractmethod
    async def search(self, query: str, domain: str | None = None, limit: int = 10) -> list[GalleryEntry]:
        ...


class InMemoryGallery(AbstractGallery):
    """
    Gallery kept in a dict, with specs read from the store's blobs.

    Entries are deduplicated by domain; republishing bumps the version.
    """

    def __init__(self, store: AbstractStore) -> None:
        self._store = store
        self.entries: dict[str, GalleryEntry] = {}

    async def get_by_domain(self, domain: str) -> GalleryEntry | None:
        for entry in self.entries.values():
            if entry.domain == domain:
                return entry.model_copy()
        return None

    async def get_spec(self, gallery_id: str) -> dict[str, Any]:
        entry = self.entries.get(gallery_id)
        if entry is None:
            raise NotFoundError(id=gallery_id, resource="gallery")
        return await load_spec_blob(self._store, entry.spec_key, gallery_id)

    async def publish(self, site_id: str, contributor: str = "anonymous") -> GalleryEntry:
        site = await self._store.get_site(site_id)
        endpoints = await self._store.get_endpoints(site_id)
        summary = summarize_endpoints(endpoints)
        now = utc_now()

        existing = await self.get_by_domain(site.domain)
        if existing is not None:
            updated = existing.model_copy(update={
                "url": site.url,
                "task": summary if endpoints else existing.task,
                "endpoint_count": len(endpoints),
                "endpoints_summary": summary,
                "spec_key": spec_key_for(site_id),
                "contributor": contributor,
                "updated_at": now,
                "version": existing.version + 1,
            })
            self.entries[existing.id] = updated
            logger.info("Republished %s to gallery (version %d)", site.domain, updated.version)
            return updated.model_copy()

        entry = GalleryEntry(
            id=generate_id("gal"),
            domain=site.domain,
            url=site.url,
            task=summary if endpoints else "no endpoints captured",
            endpoint_count=len(endpoints),
            endpoints_summary=summary,
            spec_key=spec_key_for(site_id),
            contributor=contributor,
            created_at=now,
            updated_at=now,
            version=1,
        )
        self.entries[entry.id] = entry
        logger.info("Published %s to gallery", site.domain)
        return entry.model_copy()

    async def search(self, query: str, domain: str | None = None, limit: int = 10) -> list[GalleryEntry]:
        limit = min(limit, MAX_SEARCH_LIMIT)
        q = (query or "").lower()
        results: list[GalleryEntry] = []

        for entry in self.entries.values():
            if domain and entry.domain != domain:
                continue
            haystack = " ".join([entry.domain, entry.url, entry.task, entry.endpoints_summary]).lower()
            if q and q not in haystack:
                continue
            results.append(entry.model_copy())

        return results[:limit]
