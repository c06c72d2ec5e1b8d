"""
unsurf/tools/worker.py

Replay executor: call a scouted path's endpoint directly over HTTP,
without a browser.
"""

import json
from typing import Any

import httpx

from unsurf.config import Config
from unsurf.data_models.endpoint import BODY_METHODS, CapturedEndpoint, HTTPMethod
from unsurf.data_models.run import RunRecord, RunStatus, RunTool
from unsurf.data_models.tools import WorkerInput, WorkerResult
from unsurf.services.store import AbstractStore
from unsurf.utils.exceptions import NetworkError
from unsurf.utils.logger import get_logger
from unsurf.utils.url_utils import resolve_path_pattern

logger = get_logger(name=__name__)

NO_ENDPOINTS_MESSAGE = "No endpoints found for path"


def select_endpoint(endpoints: list[CapturedEndpoint], has_data: bool) -> CapturedEndpoint:
    """
    Pick the endpoint to replay.

    With data, the first POST/PUT/PATCH endpoint; without, the first GET.
    Falls back to the first endpoint in list order. endpoints must be non-empty.
    """
    if has_data:
        preferred = (endpoint for endpoint in endpoints if endpoint.method in BODY_METHODS)
    else:
        preferred = (endpoint for endpoint in endpoints if endpoint.method == HTTPMethod.GET)
    return next(preferred, endpoints[0])


class Worker:
    """
    Replays one endpoint per call and records every attempt as a run.
    """

    def __init__(
        self,
        store: AbstractStore,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Args:
            store: Persistence for paths, endpoints and runs.
            http_client: Shared client; when omitted a client is opened per call.
            timeout: Replay timeout in seconds; defaults to Config.REPLAY_TIMEOUT.
        """
        self._store = store
        self._http_client = http_client
        self._timeout = timeout if timeout is not None else Config.REPLAY_TIMEOUT

    async def run(self, worker_input: WorkerInput) -> WorkerResult:
        """
        Replay the best endpoint of a scouted path.

        Returns:
            success=True with the decoded response, or success=False when the
            path has no endpoints.

        Raises:
            NotFoundError: If the path does not exist.
            NetworkError: If the HTTP call fails or returns non-2xx.
            PersistenceError: If storage fails.
        """
        path = await self._store.get_path(worker_input.path_id)
        endpoint_ids = set(path.endpoint_ids)
        endpoints = [
            endpoint for endpoint in await self._store.get_endpoints(path.site_id)
            if endpoint.id in endpoint_ids
        ]

        if not endpoints:
            logger.warning("Path %s has no endpoints to replay", path.id)
            await self._record_run(worker_input, success=False, error=NO_ENDPOINTS_MESSAGE)
            return WorkerResult(success=False, response=NO_ENDPOINTS_MESSAGE)

        endpoint = select_endpoint(endpoints, has_data=worker_input.data is not None)
        try:
            response = await self._replay(endpoint, worker_input.data, worker_input.headers)
        except NetworkError as e:
            await self._record_run(worker_input, success=False, error=str(e))
            raise

        await self._record_run(worker_input, success=True, response=response)
        return WorkerResult(success=True, response=response)

    async def _replay(
        self,
        endpoint: CapturedEndpoint,
        data: dict[str, Any] | None,
        custom_headers: dict[str, str] | None,
    ) -> Any:
        url = resolve_path_pattern(endpoint.path_pattern, data)
        # caller headers (auth, cookies) override the defaults
        headers = {"Accept": "application/json", **(custom_headers or {})}
        body: bytes | None = None
        if endpoint.method in BODY_METHODS and data is not None:
            headers["Content-Type"] = "application/json"
            body = json.dumps(data).encode("utf-8")

        logger.info("Replaying %s %s", endpoint.method.value, url)
        if self._http_client is not None:
            return await self._send(self._http_client, endpoint.method.value, url, headers, body)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await self._send(client, endpoint.method.value, url, headers, body)

    async def _send(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
    ) -> Any:
        try:
            response = await client.request(method, url, headers=headers, content=body, timeout=self._timeout)
        except httpx.HTTPError as e:
            raise NetworkError(url=url, message=f"Request failed: {e}") from e

        if not response.is_success:
            raise NetworkError(
                url=url,
                message=f"HTTP {response.status_code} {response.reason_phrase}",
                status=response.status_code,
            )

        if "json" in response.headers.get("content-type", ""):
            try:
                return response.json()
            except ValueError as e:
                raise NetworkError(url=url, message=f"JSON parse failed: {e}", status=response.status_code) from e
        return response.text

    async def _record_run(
        self,
        worker_input: WorkerInput,
        success: bool,
        response: Any = None,
        error: str | None = None,
    ) -> None:
        await self._store.save_run(RunRecord(
            path_id=worker_input.path_id,
            tool=RunTool.WORKER,
            status=RunStatus.SUCCESS if success else RunStatus.FAILURE,
            input=json.dumps({"pathId": worker_input.path_id, "data": worker_input.data}, default=str),
            output=json.dumps(response, default=str) if success else None,
            error=error,
        ))
