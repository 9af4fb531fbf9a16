# trans_relay/synchronizer.py
"""本模块监听当前语言的变化，并在冷却期之外触发翻译缓存的全量刷新。"""

import asyncio
import time
from collections.abc import Callable
from typing import Any, Optional

import structlog

from trans_relay.cache import TranslationCache
from trans_relay.config import TransRelayConfig
from trans_relay.interfaces import TranslationAPI
from trans_relay.signal import Signal, Unsubscribe

logger = structlog.get_logger(__name__)


class LocaleSynchronizer:
    """
    语言同步器。

    这是唯一会整体替换翻译缓存的路径。同一语言在冷却期内最多拉取一次，
    以限制界面上快速切换语言时对远程服务造成的压力。
    """

    def __init__(
        self,
        api: TranslationAPI,
        cache: TranslationCache,
        config_provider: Callable[[], TransRelayConfig],
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api = api
        self.cache = cache
        self._config = config_provider
        self._clock = clock
        self.locale = ""
        self.last_loaded: dict[str, float] = {}
        self._in_flight: set[str] = set()
        self._tasks: set[asyncio.Task[Any]] = set()
        self._unsubscribe: Optional[Unsubscribe] = None

    def is_cooling_down(self, locale: str) -> bool:
        loaded_at = self.last_loaded.get(locale)
        if loaded_at is None:
            return False
        return self._clock() - loaded_at < self._config().locale_cooldown

    async def on_locale_change(self, locale: str, force: bool = False) -> bool:
        """
        处理语言变化。只有真正完成了一次全量拉取与缓存替换时才返回 True。

        Args:
            locale: 新的语言代码，空值会被忽略。
            force: 为 True 时忽略冷却期。

        """
        if not locale:
            return False
        if not self._config().is_configured:
            logger.debug("引擎尚未配置，忽略语言变化", locale=locale)
            return False
        if not force and self.is_cooling_down(locale):
            logger.debug("语言仍在冷却期内，跳过拉取", locale=locale)
            return False
        if not force and locale in self._in_flight:
            return False

        logger.info("检测到语言变化，开始拉取翻译", locale=locale, force=force)
        self.locale = locale
        self._in_flight.add(locale)
        try:
            response = await self.api.fetch_all(locale)
            if not response.ok:
                logger.error(
                    "拉取翻译失败，保留现有缓存",
                    locale=locale,
                    error_kind=response.error_kind.value,
                    errors=response.errors,
                )
                return False
            if not await self.cache.replace(response.data):
                return False
            self.last_loaded[locale] = self._clock()
            logger.info("翻译已刷新", locale=locale)
            return True
        finally:
            self._in_flight.discard(locale)

    def forget(self, locale: Optional[str] = None) -> None:
        """清除加载记录，使下一次语言变化不受冷却期限制。"""
        if locale is None:
            self.last_loaded.clear()
        else:
            self.last_loaded.pop(locale, None)

    def attach(self, signal: Signal[str]) -> None:
        """订阅语言信号。重复调用会先取消之前的订阅。"""
        self.detach()
        self._unsubscribe = signal.subscribe(self._schedule)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _schedule(self, locale: str) -> None:
        if not locale:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("没有运行中的事件循环，无法处理语言变化", locale=locale)
            return
        task = loop.create_task(self._handle_change(locale))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _handle_change(self, locale: str) -> None:
        try:
            await self.on_locale_change(locale)
        except Exception:
            logger.exception("处理语言变化时发生意外错误", locale=locale)

    async def wait_idle(self) -> None:
        """等待所有已调度的语言变化处理完成。"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        self.detach()
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
