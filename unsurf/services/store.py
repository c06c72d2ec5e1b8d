"""
unsurf/services/store.py

Persistence for sites, endpoints, scouted paths, audit runs and blobs.

Contains:
- AbstractStore: async persistence interface
- InMemoryStore: dict-backed implementation for tests and single-process use
- FileStore: JSON/JSONL documents and raw blobs under a root directory

Endpoint uniqueness on (site_id, method, path_pattern) is enforced here:
saving an endpoint whose key already exists merges it into the stored one.
Neither implementation is transactional across calls.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from unsurf.config import Config
from unsurf.data_models.endpoint import CapturedEndpoint
from unsurf.data_models.path import ScoutedPath
from unsurf.data_models.run import RunRecord
from unsurf.data_models.site import Site
from unsurf.endpoint_discovery.schema_inferrer import AbstractSchemaInferrer, SchemaInferrer
from unsurf.utils.exceptions import NotFoundError, PersistenceError
from unsurf.utils.logger import get_logger

logger = get_logger(name=__name__)


def upsert_endpoints(
    stored: list[CapturedEndpoint],
    incoming: Sequence[CapturedEndpoint],
    inferrer: AbstractSchemaInferrer,
) -> tuple[list[CapturedEndpoint], list[CapturedEndpoint]]:
    """
    Merge incoming endpoints into a site's stored list by identity.

    Returns:
        (new stored list, persisted record for each incoming endpoint in order)
    """
    result = list(stored)
    index = {endpoint.identity: i for i, endpoint in enumerate(result)}
    persisted: list[CapturedEndpoint] = []

    for endpoint in incoming:
        position = index.get(endpoint.identity)
        if position is None:
            index[endpoint.identity] = len(result)
            result.append(endpoint)
            persisted.append(endpoint)
        else:
            merged = result[position].merged_with(endpoint, inferrer)
            result[position] = merged
            persisted.append(merged)

    return result, persisted


class AbstractStore(ABC):
    """
    Async persistence interface consumed by the tools.

    Getters raise NotFoundError for unknown ids; I/O failures raise
    PersistenceError.
    """

    @abstractmethod
    async def save_site(self, site: Site) -> None:
        ...

    @abstractmethod
    async def get_site(self, site_id: str) -> Site:
        ...

    @abstractmethod
    async def save_endpoints(self, endpoints: Sequence[CapturedEndpoint]) -> list[CapturedEndpoint]:
        """
        Insert or merge endpoints.

        Returns:
            The persisted record for each input, in input order. A merged
            record keeps the id of the endpoint that was stored first.
        """
        ...

    @abstractmethod
    async def get_endpoints(self, site_id: str) -> list[CapturedEndpoint]:
        ...

    @abstractmethod
    async def save_path(self, path: ScoutedPath) -> None:
        ...

    @abstractmethod
    async def get_path(self, path_id: str) -> ScoutedPath:
        ...

    @abstractmethod
    async def list_paths(self, site_id: str) -> list[ScoutedPath]:
        ...

    @abstractmethod
    async def save_run(self, run: RunRecord) -> None:
        ...

    @abstractmethod
    async def list_runs(self, path_id: str) -> list[RunRecord]:
        ...

    @abstractmethod
    async def save_blob(self, key: str, data: bytes) -> None:
        ...

    @abstractmethod
    async def get_blob(self, key: str) -> bytes | None:
        """Blob content, or None if no blob is stored under key."""
        ...


class InMemoryStore(AbstractStore):
    """
    Dict-backed store. Records are copied in and out so callers never share
    mutable state with the store.
    """

    def __init__(self, inferrer: AbstractSchemaInferrer | None = None) -> None:
        self._inferrer = inferrer or SchemaInferrer()
        self.sites: dict[str, Site] = {}
        self.endpoints: dict[str, list[CapturedEndpoint]] = {}
        self.paths: dict[str, ScoutedPath] = {}
        self.runs: list[RunRecord] = []
        self.blobs: dict[str, bytes] = {}

    async def save_site(self, site: Site) -> None:
        self.sites[site.id] = site.model_copy(deep=True)

    async def get_site(self, site_id: str) -> Site:
        site = self.sites.get(site_id)
        if site is None:
            raise NotFoundError(id=site_id, resource="site")
        return site.model_copy(deep=True)

    async def save_endpoints(self, endpoints: Sequence[CapturedEndpoint]) -> list[CapturedEndpoint]:
        persisted: list[CapturedEndpoint] = []
        by_site: dict[str, list[CapturedEndpoint]] = {}
        for endpoint in endpoints:
            by_site.setdefault(endpoint.site_id, []).append(endpoint.model_copy(deep=True))

        saved: dict[tuple[str, str, str], CapturedEndpoint] = {}
        for site_id, incoming in by_site.items():
            stored, records = upsert_endpoints(self.endpoints.get(site_id, []), incoming, self._inferrer)
            self.endpoints[site_id] = stored
            for record in records:
                saved[record.identity] = record

        for endpoint in endpoints:
            persisted.append(saved[endpoint.identity].model_copy(deep=True))
        return persisted

    async def get_endpoints(self, site_id: str) -> list[CapturedEndpoint]:
        return [endpoint.model_copy(deep=True) for endpoint in self.endpoints.get(site_id, [])]

    async def save_path(self, path: ScoutedPath) -> None:
        self.paths[path.id] = path.model_copy(deep=True)

    async def get_path(self, path_id: str) -> ScoutedPath:
        path = self.paths.get(path_id)
        if path is None:
            raise NotFoundError(id=path_id, resource="path")
        return path.model_copy(deep=True)

    async def list_paths(self, site_id: str) -> list[ScoutedPath]:
        return [path.model_copy(deep=True) for path in self.paths.values() if path.site_id == site_id]

    async def save_run(self, run: RunRecord) -> None:
        self.runs.append(run.model_copy(deep=True))

    async def list_runs(self, path_id: str) -> list[RunRecord]:
        return [run.model_copy(deep=True) for run in self.runs if run.path_id == path_id]

    async def save_blob(self, key: str, data: bytes) -> None:
        self.blobs[key] = bytes(data)

    async def get_blob(self, key: str) -> bytes | None:
        return self.blobs.get(key)


class FileStore(AbstractStore):
    """
    Filesystem store.

    Layout under root:
        sites/<site_id>.json
        endpoints/<site_id>.json      (list of endpoints for the site)
        paths/<path_id>.json
        runs/<path_id>.jsonl          (one RunRecord per line)
        blobs/<key>                   (raw bytes; key may contain "/")

    Blocking file I/O runs in a worker thread.
    """

    def __init__(
        self,
        root: str | Path | None = None,
        inferrer: AbstractSchemaInferrer | None = None,
    ) -> None:
        self._root = Path(root or Config.DATA_DIR)
        self._inferrer = inferrer or SchemaInferrer()
        self._endpoint_lock = asyncio.Lock()

    # Private helpers _____________________________________________________________________________

    def _file(self, *parts: str) -> Path:
        path = self._root.joinpath(*parts).resolve()
        if not path.is_relative_to(self._root.resolve()):
            raise PersistenceError(f"Refusing to access path outside store root: {'/'.join(parts)}")
        return path

    async def _run_io(self, description: str, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except (OSError, ValueError, ValidationError) as e:
            raise PersistenceError(f"Failed to {description}: {e}", cause=e) from e

    @staticmethod
    def _write_text(path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(path.name + ".tmp")
        with open(tmp, mode="w", encoding="utf-8") as f:
            f.write(text)
        tmp.replace(path)

    @staticmethod
    def _read_text(path: Path) -> str | None:
        if not path.exists():
            return None
        with open(path, mode="r", encoding="utf-8") as f:
            return f.read()

    @staticmethod
    def _append_line(path: Path, line: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, mode="a", encoding="utf-8") as f:
            f.write(line + "\n")

    @staticmethod
    def _write_bytes(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, mode="wb") as f:
            f.write(data)

    @staticmethod
    def _read_bytes(path: Path) -> bytes | None:
        if not path.exists():
            return None
        with open(path, mode="rb") as f:
            return f.read()

    def _load_endpoints(self, site_id: str) -> list[CapturedEndpoint]:
        text = self._read_text(self._file("endpoints", f"{site_id}.json"))
        if text is None:
            return []
        return [CapturedEndpoint.model_validate(item) for item in json.loads(text)]

    def _dump_endpoints(self, site_id: str, endpoints: list[CapturedEndpoint]) -> None:
        payload = json.dumps([endpoint.model_dump(mode="json") for endpoint in endpoints], indent=2)
        self._write_text(self._file("endpoints", f"{site_id}.json"), payload)

    # Sites _______________________________________________________________________________________

    async def save_site(self, site: Site) -> None:
        await self._run_io("save site", self._write_text,
                           self._file("sites", f"{site.id}.json"), site.model_dump_json(indent=2))

    async def get_site(self, site_id: str) -> Site:
        text = await self._run_io("read site", self._read_text, self._file("sites", f"{site_id}.json"))
        if text is None:
            raise NotFoundError(id=site_id, resource="site")
        try:
            return Site.model_validate_json(text)
        except ValidationError as e:
            raise PersistenceError(f"Corrupt site record {site_id}: {e}", cause=e) from e

    # Endpoints ___________________________________________________________________________________

    async def save_endpoints(self, endpoints: Sequence[CapturedEndpoint]) -> list[CapturedEndpoint]:
        by_site: dict[str, list[CapturedEndpoint]] = {}
        for endpoint in endpoints:
            by_site.setdefault(endpoint.site_id, []).append(endpoint)

        saved: dict[tuple[str, str, str], CapturedEndpoint] = {}
        # read-merge-write must not interleave within this process
        async with self._endpoint_lock:
            for site_id, incoming in by_site.items():
                stored = await self._run_io("read endpoints", self._load_endpoints, site_id)
                merged, records = upsert_endpoints(stored, incoming, self._inferrer)
                await self._run_io("save endpoints", self._dump_endpoints, site_id, merged)
                for record in records:
                    saved[record.identity] = record

        return [saved[endpoint.identity] for endpoint in endpoints]

    async def get_endpoints(self, site_id: str) -> list[CapturedEndpoint]:
        return await self._run_io("read endpoints", self._load_endpoints, site_id)

    # Paths _______________________________________________________________________________________

    async def save_path(self, path: ScoutedPath) -> None:
        await self._run_io("save path", self._write_text,
                           self._file("paths", f"{path.id}.json"), path.model_dump_json(indent=2))

    async def get_path(self, path_id: str) -> ScoutedPath:
        text = await self._run_io("read path", self._read_text, self._file("paths", f"{path_id}.json"))
        if text is None:
            raise NotFoundError(id=path_id, resource="path")
        try:
            return ScoutedPath.model_validate_json(text)
        except ValidationError as e:
            raise PersistenceError(f"Corrupt path record {path_id}: {e}", cause=e) from e

    async def list_paths(self, site_id: str) -> list[ScoutedPath]:
        def _scan() -> list[ScoutedPath]:
            directory = self._file("paths")
            if not directory.exists():
                return []
            paths = [
                ScoutedPath.model_validate_json(file.read_text(encoding="utf-8"))
                for file in sorted(directory.glob("*.json"))
            ]
            return [path for path in paths if path.site_id == site_id]

        return await self._run_io("list paths", _scan)

    # Runs ________________________________________________________________________________________

    async def save_run(self, run: RunRecord) -> None:
        await self._run_io("save run", self._append_line,
                           self._file("runs", f"{run.path_id}.jsonl"), run.model_dump_json())

    async def list_runs(self, path_id: str) -> list[RunRecord]:
        def _load() -> list[RunRecord]:
            text = self._read_text(self._file("runs", f"{path_id}.jsonl"))
            if text is None:
                return []
            return [RunRecord.model_validate_json(line) for line in text.splitlines() if line.strip()]

        return await self._run_io("read runs", _load)

    # Blobs _______________________________________________________________________________________

    async def save_blob(self, key: str, data: bytes) -> None:
        await self._run_io(f"save blob {key}", self._write_bytes, self._file("blobs", key), data)

    async def get_blob(self, key: str) -> bytes | None:
        return await self._run_io(f"read blob {key}", self._read_bytes, self._file("blobs", key))
