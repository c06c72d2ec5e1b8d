"""
unsurf/tools/heal.py

Heal orchestrator: retry a failing replay, then re-discover the site and
verify the replacement path.

Path status transitions:
    active -> broken            retries exhausted
    broken -> healing           re-discovery started
    healing -> active           replacement path replayed successfully
    healing -> broken           replacement failed (or re-discovery raised)
"""

import json
from typing import Any

from unsurf.data_models.path import PathStatus
from unsurf.data_models.run import RunRecord, RunStatus, RunTool
from unsurf.data_models.tools import HealInput, HealResult, ScoutInput, WorkerInput, WorkerResult
from unsurf.services.store import AbstractStore
from unsurf.tools.scout import Scout
from unsurf.tools.worker import Worker
from unsurf.utils.exceptions import NotFoundError, UnsurfError
from unsurf.utils.logger import get_logger
from unsurf.utils.retry import RetryPolicy

logger = get_logger(name=__name__)


class Healer:
    """
    Recovers a broken scouted path.

    Ordinary failure to recover is returned as HealResult(healed=False);
    only store and browser failures propagate.
    """

    def __init__(
        self,
        store: AbstractStore,
        scout: Scout,
        worker: Worker,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._store = store
        self._scout = scout
        self._worker = worker
        self._retry_policy = retry_policy or RetryPolicy()

    async def run(self, heal_input: HealInput) -> HealResult:
        """
        Heal a path.

        Returns:
            healed=True without a new path id when a retry succeeds;
            healed=True with new_path_id when re-discovery produced a working
            path; healed=False otherwise.

        Raises:
            NotFoundError: If the path or its site does not exist.
            AutomationError: If re-discovery fails in the browser.
            PersistenceError: If storage fails.
        """
        if await self._retry_replay(heal_input.path_id):
            logger.info("Path %s recovered on retry", heal_input.path_id)
            return HealResult(healed=True)

        await self._mark_broken(heal_input.path_id, heal_input.error)
        return await self._rescout_and_verify(heal_input.path_id)

    async def _retry_replay(self, path_id: str) -> bool:
        try:
            result = await self._retry_policy.call(
                lambda: self._worker.run(WorkerInput(path_id=path_id)),
                retry_on=(UnsurfError,),
                give_up_on=(NotFoundError,),
                should_retry_result=lambda r: not r.success,
            )
        except NotFoundError:
            raise
        except UnsurfError as e:
            logger.warning("Replay retries exhausted for %s: %s", path_id, e)
            return False
        return result.success

    async def _mark_broken(self, path_id: str, error: str | None) -> None:
        path = await self._store.get_path(path_id)
        await self._store.save_path(path.model_copy(update={
            "status": PathStatus.BROKEN,
            "fail_count": path.fail_count + 1,
        }))
        logger.info("Path %s marked broken", path_id)
        await self._record_run(
            path_id,
            RunStatus.FAILURE,
            {"pathId": path_id, "error": error},
            error=error or "Unknown error",
        )

    async def _rescout_and_verify(self, path_id: str) -> HealResult:
        old_path = await self._store.get_path(path_id)
        await self._store.save_path(old_path.model_copy(update={"status": PathStatus.HEALING}))
        logger.info("Path %s healing: re-discovering", path_id)

        try:
            site = await self._store.get_site(old_path.site_id)
            scout_result = await self._scout.run(ScoutInput(url=site.url, task=old_path.task))
        except BaseException:
            await self._store.save_path(old_path.model_copy(update={"status": PathStatus.BROKEN}))
            raise
        new_path_id = scout_result.path_id

        verification = await self._verify(new_path_id)
        if verification is not None and verification.success:
            await self._store.save_path(old_path.model_copy(update={
                "status": PathStatus.ACTIVE,
                "heal_count": old_path.heal_count + 1,
            }))
            await self._record_run(
                path_id,
                RunStatus.SUCCESS,
                {"pathId": path_id},
                output={"newPathId": new_path_id},
            )
            logger.info("Path %s healed, replacement %s", path_id, new_path_id)
            return HealResult(healed=True, new_path_id=new_path_id)

        await self._store.save_path(old_path.model_copy(update={
            "status": PathStatus.BROKEN,
            "fail_count": old_path.fail_count + 1,
            "heal_count": old_path.heal_count + 1,
        }))
        # the replacement stays persisted; the run keeps a handle to it
        await self._record_run(
            path_id,
            RunStatus.FAILURE,
            {"pathId": path_id},
            output={"newPathId": new_path_id},
            error="Replacement path failed verification",
        )
        logger.info("Path %s could not be healed", path_id)
        return HealResult(healed=False)

    async def _verify(self, new_path_id: str) -> WorkerResult | None:
        try:
            return await self._worker.run(WorkerInput(path_id=new_path_id))
        except UnsurfError as e:
            logger.warning("Verification replay of %s failed: %s", new_path_id, e)
            return None

    async def _record_run(
        self,
        path_id: str,
        status: RunStatus,
        run_input: dict[str, Any],
        output: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> None:
        await self._store.save_run(RunRecord(
            path_id=path_id,
            tool=RunTool.HEAL,
            status=status,
            input=json.dumps(run_input),
            output=json.dumps(output) if output is not None else None,
            error=error,
        ))
