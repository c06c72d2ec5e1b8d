"""
unsurf/tools/scout.py

Discovery orchestrator: browse a site, capture its API traffic, and persist
the resulting endpoints, scouted path and OpenAPI contract.

When a gallery is configured and already holds a contract for the domain,
the browser is skipped and endpoints are rebuilt from that contract.
"""

import json
from collections.abc import Callable
from typing import Any

from unsurf.data_models.endpoint import CapturedEndpoint, HTTPMethod
from unsurf.data_models.gallery import GalleryEntry
from unsurf.data_models.ids import utc_now
from unsurf.data_models.path import PathStep, PathStepAction, ScoutedPath
from unsurf.data_models.run import RunRecord, RunStatus, RunTool
from unsurf.data_models.site import Site
from unsurf.data_models.tools import ScoutInput, ScoutResult
from unsurf.endpoint_discovery.classifier import EndpointGroup, group_by_endpoint
from unsurf.endpoint_discovery.openapi_generator import (
    AbstractOpenApiGenerator,
    OpenApiGenerator,
    paths_to_endpoint_patterns,
)
from unsurf.endpoint_discovery.schema_inferrer import AbstractSchemaInferrer, SchemaInferrer
from unsurf.services.browser import AbstractBrowser
from unsurf.services.directory import AbstractDirectory
from unsurf.services.gallery import AbstractGallery, encode_spec, spec_key_for
from unsurf.services.store import AbstractStore
from unsurf.utils.exceptions import DirectoryValidationError
from unsurf.utils.logger import get_logger
from unsurf.utils.url_utils import extract_domain

logger = get_logger(name=__name__)


def screenshot_key_for(site_id: str) -> str:
    """Blob key of the screenshot taken at the end of a discovery."""
    return f"screenshots/{site_id}/scout.png"


class Scout:
    """
    Runs one discovery per call.

    The store, browser factory, inferrer and generator are required
    collaborators; the gallery and directory are optional, and failures
    inside them are logged and never abort a discovery.
    """

    def __init__(
        self,
        store: AbstractStore,
        browser_factory: Callable[[], AbstractBrowser],
        inferrer: AbstractSchemaInferrer | None = None,
        generator: AbstractOpenApiGenerator | None = None,
        gallery: AbstractGallery | None = None,
        directory: AbstractDirectory | None = None,
    ) -> None:
        """
        Args:
            store: Persistence for sites, endpoints, paths, runs and blobs.
            browser_factory: Returns a fresh, unopened browser per discovery.
            inferrer: Schema inference; defaults to SchemaInferrer.
            generator: Contract builder; defaults to OpenApiGenerator.
            gallery: Optional discovery cache.
            directory: Optional fingerprint index.
        """
        self._store = store
        self._browser_factory = browser_factory
        self._inferrer = inferrer or SchemaInferrer()
        self._generator = generator or OpenApiGenerator()
        self._gallery = gallery
        self._directory = directory

    async def run(self, scout_input: ScoutInput) -> ScoutResult:
        """
        Discover the APIs behind a URL.

        Raises:
            AutomationError: If the browser session fails.
            PersistenceError: If storage fails.
        """
        domain = extract_domain(scout_input.url)

        cached = await self._lookup_gallery(domain)
        if cached is not None:
            entry, spec, pairs = cached
            logger.info("Gallery hit for %s (%s), skipping browser", domain, entry.id)
            return await self._scout_from_gallery(scout_input, domain, spec, pairs)

        return await self._scout_live(scout_input, domain)

    # Live discovery ______________________________________________________________________________

    async def _scout_live(self, scout_input: ScoutInput, domain: str) -> ScoutResult:
        async with self._browser_factory() as browser:
            await browser.navigate(scout_input.url)
            events = await browser.get_network_events()
            screenshot = await browser.screenshot()
        logger.info("Captured %d network events from %s", len(events), scout_input.url)

        now = utc_now()
        site = Site(url=scout_input.url, domain=domain, first_scouted_at=now, last_scouted_at=now)
        groups = group_by_endpoint(events)
        endpoints = [self._build_endpoint(group, site.id) for group in groups.values()]
        logger.info("Built %d endpoints for %s", len(endpoints), domain)

        spec = self._generator.generate(scout_input.url, endpoints)

        await self._store.save_site(site)
        persisted = await self._store.save_endpoints(endpoints) if endpoints else []
        path = self._build_path(scout_input, site.id, persisted)
        await self._store.save_path(path)
        await self._store.save_blob(screenshot_key_for(site.id), screenshot)
        await self._store.save_blob(spec_key_for(site.id), encode_spec(spec))
        await self._record_run(scout_input, site.id, path.id, len(persisted))

        if scout_input.publish is not False:
            await self._publish_to_gallery(site.id)
        if scout_input.publish is True:
            await self._publish_to_directory(site.id)

        return ScoutResult(
            site_id=site.id,
            endpoint_count=len(persisted),
            path_id=path.id,
            open_api_spec=spec,
        )

    def _build_endpoint(self, group: EndpointGroup, site_id: str) -> CapturedEndpoint:
        request_samples: list[Any] = []
        response_samples: list[Any] = []
        for event in group.events:
            ok, value = event.json_request_body()
            if ok:
                request_samples.append(value)
            ok, value = event.json_response_body()
            if ok:
                response_samples.append(value)

        now = utc_now()
        return CapturedEndpoint(
            site_id=site_id,
            method=group.method,
            path_pattern=group.pattern,
            request_schema=self._inferrer.infer(request_samples) if request_samples else None,
            response_schema=self._inferrer.infer(response_samples) if response_samples else None,
            sample_count=len(group.events),
            first_seen_at=now,
            last_seen_at=now,
        )

    # Gallery hit _________________________________________________________________________________

    async def _lookup_gallery(
        self,
        domain: str,
    ) -> tuple[GalleryEntry, dict[str, Any], list[tuple[HTTPMethod, str]]] | None:
        """Cached entry, contract and its routes; None on a miss or an unreadable contract."""
        if self._gallery is None:
            return None
        try:
            entry = await self._gallery.get_by_domain(domain)
            if entry is None:
                return None
            spec = await self._gallery.get_spec(entry.id)
            return entry, spec, paths_to_endpoint_patterns(spec)
        except Exception as e:
            logger.warning("Gallery lookup failed for %s, scouting live: %s", domain, e)
            return None

    async def _scout_from_gallery(
        self,
        scout_input: ScoutInput,
        domain: str,
        spec: dict[str, Any],
        pairs: list[tuple[HTTPMethod, str]],
    ) -> ScoutResult:
        now = utc_now()
        site = Site(url=scout_input.url, domain=domain, first_scouted_at=now, last_scouted_at=now)
        # not observed in this session, so no samples and no schemas
        endpoints = [
            CapturedEndpoint(
                site_id=site.id,
                method=method,
                path_pattern=pattern,
                sample_count=0,
                first_seen_at=now,
                last_seen_at=now,
            )
            for method, pattern in pairs
        ]

        await self._store.save_site(site)
        persisted = await self._store.save_endpoints(endpoints) if endpoints else []
        path = self._build_path(scout_input, site.id, persisted)
        await self._store.save_path(path)
        # directory publish reads the contract from the new site's key
        await self._store.save_blob(spec_key_for(site.id), encode_spec(spec))
        await self._record_run(scout_input, site.id, path.id, len(persisted), from_gallery=True)

        await self._publish_to_gallery(site.id)
        if scout_input.publish is True:
            await self._publish_to_directory(site.id)

        return ScoutResult(
            site_id=site.id,
            endpoint_count=len(persisted),
            path_id=path.id,
            open_api_spec=spec,
            from_gallery=True,
        )

    # Shared ______________________________________________________________________________________

    @staticmethod
    def _build_path(scout_input: ScoutInput, site_id: str, endpoints: list[CapturedEndpoint]) -> ScoutedPath:
        now = utc_now()
        return ScoutedPath(
            site_id=site_id,
            task=scout_input.task,
            steps=[PathStep(action=PathStepAction.NAVIGATE, url=scout_input.url)],
            endpoint_ids=[endpoint.id for endpoint in endpoints],
            created_at=now,
            last_used_at=now,
        )

    async def _record_run(
        self,
        scout_input: ScoutInput,
        site_id: str,
        path_id: str,
        endpoint_count: int,
        from_gallery: bool = False,
    ) -> None:
        output: dict[str, Any] = {"siteId": site_id, "endpointCount": endpoint_count, "pathId": path_id}
        if from_gallery:
            output["fromGallery"] = True
        await self._store.save_run(RunRecord(
            path_id=path_id,
            tool=RunTool.SCOUT,
            status=RunStatus.SUCCESS,
            input=json.dumps({"url": scout_input.url, "task": scout_input.task}),
            output=json.dumps(output),
        ))

    async def _publish_to_gallery(self, site_id: str) -> None:
        if self._gallery is None:
            return
        try:
            await self._gallery.publish(site_id)
        except Exception as e:
            logger.warning("Gallery publish failed for %s: %s", site_id, e)

    async def _publish_to_directory(self, site_id: str) -> None:
        if self._directory is None:
            return
        try:
            await self._directory.publish(site_id)
        except DirectoryValidationError as e:
            logger.error("Directory publish validation failed: %s - %s", e.field, e.message)
        except Exception as e:
            logger.warning("Directory publish failed for %s: %s", site_id, e)