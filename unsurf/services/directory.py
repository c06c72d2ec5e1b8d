"""
unsurf/services/directory.py

Directory: optional index of published API fingerprints, one per domain.

Publishing validates the site first and raises DirectoryValidationError
when it is not publishable. The version read-then-increment is not atomic;
concurrent publishes of one domain from separate processes can race.
"""

from abc import ABC, abstractmethod
from collections import Counter
from typing import Any
from urllib.parse import urlsplit

from unsurf.data_models.gallery import Fingerprint
from unsurf.data_models.ids import generate_id, utc_now
from unsurf.services.gallery import encode_spec, load_spec_blob, spec_key_for
from unsurf.services.store import AbstractStore
from unsurf.utils.exceptions import DirectoryValidationError, NotFoundError
from unsurf.utils.logger import get_logger

logger = get_logger(name=__name__)


def directory_spec_key(domain: str) -> str:
    """Blob key of the directory's copy of a domain's OpenAPI document."""
    return f"directory/{domain}/openapi.json"


class AbstractDirectory(ABC):
    """
    Interface for the fingerprint index.
    """

    @abstractmethod
    async def publish(self, site_id: str, contributor: str = "anonymous") -> Fingerprint:
        """Validate a site and register (or refresh) its domain's fingerprint."""
        ...

    @abstractmethod
    async def get_fingerprint(self, domain: str) -> Fingerprint:
        ...

    @abstractmethod
    async def get_spec(self, domain: str) -> dict[str, Any]:
        ...

    @abstractmethod
    async def search(self, query: str, limit: int = 10) -> list[Fingerprint]:
        ...

    @abstractmethod
    async def list(self, offset: int = 0, limit: int = 20) -> list[Fingerprint]:
        ...


class InMemoryDirectory(AbstractDirectory):
    """
    Fingerprints kept in a dict keyed by domain.
    """

    def __init__(self, store: AbstractStore) -> None:
        self._store = store
        self.fingerprints: dict[str, Fingerprint] = {}

    async def publish(self, site_id: str, contributor: str = "anonymous") -> Fingerprint:
        site = await self._store.get_site(site_id)
        endpoints = await self._store.get_endpoints(site_id)

        if urlsplit(site.url).scheme not in ("http", "https"):
            raise DirectoryValidationError(field="url", message=f"Site URL must be http(s): {site.url}")
        if not endpoints:
            raise DirectoryValidationError(field="endpoints", message=f"No endpoints captured for {site.domain}")

        spec = await load_spec_blob(self._store, spec_key_for(site_id), site_id)
        spec_key = directory_spec_key(site.domain)
        await self._store.save_blob(spec_key, encode_spec(spec))

        existing = self.fingerprints.get(site.domain)
        fingerprint = Fingerprint(
            id=existing.id if existing else generate_id("fp"),
            domain=site.domain,
            url=site.url,
            endpoint_count=len(endpoints),
            methods=dict(Counter(endpoint.method.value for endpoint in endpoints)),
            endpoints=[f"{endpoint.method.value} {endpoint.path_pattern}" for endpoint in endpoints],
            spec_key=spec_key,
            contributor=contributor,
            last_scouted=utc_now(),
            version=existing.version + 1 if existing else 1,
        )
        self.fingerprints[site.domain] = fingerprint
        logger.info("Published %s to directory (version %d)", site.domain, fingerprint.version)
        return fingerprint.model_copy()

    async def get_fingerprint(self, domain: str) -> Fingerprint:
        fingerprint = self.fingerprints.get(domain)
        if fingerprint is None:
            raise NotFoundError(id=domain, resource="fingerprint")
        return fingerprint.model_copy()

    async def get_spec(self, domain: str) -> dict[str, Any]:
        fingerprint = await self.get_fingerprint(domain)
        return await load_spec_blob(self._store, fingerprint.spec_key, domain)

    async def search(self, query: str, limit: int = 10) -> list[Fingerprint]:
        q = query.lower()
        results = [
            fingerprint.model_copy()
            for fingerprint in self.fingerprints.values()
            if q in fingerprint.domain.lower() or any(q in ep.lower() for ep in fingerprint.endpoints)
        ]
        return results[:limit]

    async def list(self, offset: int = 0, limit: int = 20) -> list[Fingerprint]:
        ordered = sorted(self.fingerprints.values(), key=lambda fp: fp.last_scouted, reverse=True)
        return [fingerprint.model_copy() for fingerprint in ordered[offset:offset + limit]]