# trans_relay/batcher.py
"""本模块实现缺失词条的去重队列，以及定时把队列提交给远程服务的后台任务。"""

import asyncio
import contextlib
from collections.abc import Callable
from typing import Optional

import structlog

from trans_relay.cache import TranslationCache
from trans_relay.config import TransRelayConfig
from trans_relay.interfaces import TranslationAPI
from trans_relay.types import BatcherState, ErrorKind, MissingTokenRecord

logger = structlog.get_logger(__name__)

# 这些失败重试也不会成功，整批丢弃以免阻塞后续提交
_DROP_ON = frozenset({ErrorKind.VALIDATION, ErrorKind.UNAUTHORIZED})


class MissingTokenBatcher:
    """
    缺失词条批处理器。

    队列按 (分类, 词条) 在入队时去重。每次提交先对队列做快照，成功后只移除
    快照中的记录，提交期间新入队的记录留待下一轮。传输失败时记录保留并在下一轮
    重试（至少一次投递）；422 与 401 响应会丢弃整批并记录错误。
    """

    def __init__(
        self,
        api: TranslationAPI,
        cache: TranslationCache,
        config_provider: Callable[[], TransRelayConfig],
    ):
        self.api = api
        self.cache = cache
        self._config = config_provider
        self._queue: dict[tuple[str, str], MissingTokenRecord] = {}
        self._state = BatcherState.IDLE
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def state(self) -> BatcherState:
        return self._state

    @property
    def pending(self) -> tuple[MissingTokenRecord, ...]:
        return tuple(self._queue.values())

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def __len__(self) -> int:
        return len(self._queue)

    def __contains__(self, key: object) -> bool:
        return key in self._queue

    def enqueue(self, record: MissingTokenRecord) -> bool:
        """入队一条记录；若相同的 (分类, 词条) 已在队列中则返回 False。"""
        if record.key in self._queue:
            return False
        self._queue[record.key] = record
        return True

    async def flush(self) -> bool:
        """提交当前队列快照。只有提交成功时才返回 True。"""
        config = self._config()
        if not config.is_configured or not self._queue:
            return False
        if self._state is BatcherState.FLUSHING:
            return False

        self._state = BatcherState.FLUSHING
        snapshot = list(self._queue.values())
        try:
            logger.debug("提交缺失词条", count=len(snapshot))
            response = await self.api.submit_missing(config.project_id, snapshot)
            kind = response.error_kind

            if kind is ErrorKind.NONE:
                # 先标记为待翻译再出队，避免两步之间的查找被重复上报
                await self.cache.mark_many_pending(r.key for r in snapshot)
                self._discard(snapshot)
                logger.info("缺失词条已提交", count=len(snapshot), queued=len(self._queue))
                return True

            if kind in _DROP_ON:
                self._discard(snapshot)
                logger.error(
                    "缺失词条被服务端拒绝，已丢弃该批次",
                    error_kind=kind.value,
                    count=len(snapshot),
                    errors=response.errors,
                )
                return False

            logger.warning(
                "缺失词条提交失败，将在下一轮重试",
                error_kind=kind.value,
                count=len(snapshot),
                errors=response.errors,
            )
            return False
        finally:
            self._state = BatcherState.IDLE

    def _discard(self, records: list[MissingTokenRecord]) -> None:
        for record in records:
            self._queue.pop(record.key, None)

    def start(self, interval: float = 3.0) -> None:
        """启动定时提交任务。已有任务会被取消并替换，不会叠加。"""
        self._cancel()
        self._task = asyncio.get_running_loop().create_task(
            self._run(interval), name="trans-relay-flush"
        )
        logger.debug("缺失词条定时提交已启动", interval=interval)

    async def stop(self) -> None:
        task = self._task
        self._cancel()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def _cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.flush()
            except Exception:
                logger.exception("定时提交缺失词条时发生意外错误")
