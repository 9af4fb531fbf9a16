# trans_relay/engine.py
"""本模块包含 Trans-Relay 的引擎门面，负责创建、装配并管理所有组件的生命周期。"""

import logging
import time
from collections.abc import Callable
from typing import Any, Literal, Optional

import structlog
from cachetools import TTLCache
from pydantic import TypeAdapter, ValidationError

from trans_relay.api import TransRelayAPI
from trans_relay.batcher import MissingTokenBatcher
from trans_relay.cache import ReadOnlyTranslations, TranslationCache
from trans_relay.config import TransRelayConfig
from trans_relay.exceptions import ConfigurationError, StoreError
from trans_relay.interfaces import KeyValueBackend, TranslationAPI
from trans_relay.resolver import Resolver
from trans_relay.signal import Signal, Unsubscribe
from trans_relay.store import create_backend
from trans_relay.synchronizer import LocaleSynchronizer
from trans_relay.types import (
    ApiResponse,
    LocaleData,
    LocaleFlat,
    LocaleListing,
)

logger = structlog.get_logger(__name__)

LocaleFormat = Literal["", "flat", "data"]

_LOCALE_ADAPTERS: dict[str, TypeAdapter[Any]] = {
    "": TypeAdapter(dict[str, list[LocaleFlat]]),
    "flat": TypeAdapter(list[LocaleFlat]),
    "data": TypeAdapter(list[LocaleData]),
}


class TransRelay:
    """
    运行时翻译解析与同步引擎。

    没有凭据时引擎处于“未配置”状态：所有查找都直接返回原文，缺失词条不会被提交。
    宿主应用需要调用一次 `setup` 提供项目 ID、API 密钥和当前语言信号。
    若凭据已由环境变量提供，`initialize` 就会启动定时提交任务，但语言信号仍需 `setup` 订阅。
    远程客户端与持久化后端都可以注入，便于替换为测试替身。
    """

    def __init__(
        self,
        config: Optional[TransRelayConfig] = None,
        api: Optional[TranslationAPI] = None,
        backend: Optional[KeyValueBackend] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or TransRelayConfig()
        self.api: TranslationAPI = api or TransRelayAPI(self.config)
        self.backend: KeyValueBackend = backend or create_backend(self.config.store_path)
        self.initialized = False

        store = TranslationCache.create_store(self.config.store_key, self.backend)
        self.cache = TranslationCache(store)
        self.batcher = MissingTokenBatcher(self.api, self.cache, self._current_config)
        self.resolver = Resolver(self.cache, self.batcher, self._current_config)
        self.synchronizer = LocaleSynchronizer(
            self.api, self.cache, self._current_config, clock=clock
        )
        self.locale_signal: Signal[str] = Signal("")
        self._saved_log_level: Optional[int] = None
        self._locales_cache: TTLCache[tuple[str, str], LocaleListing] = TTLCache(
            maxsize=self.config.locales_cache.maxsize,
            ttl=self.config.locales_cache.ttl,
        )

    def _current_config(self) -> TransRelayConfig:
        return self.config

    async def __aenter__(self) -> "TransRelay":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def initialize(self) -> None:
        """连接持久化后端并恢复上次保存的翻译缓存。只会执行一次。"""
        if self.initialized:
            return
        restored = False
        try:
            await self.backend.connect()
        except StoreError as e:
            logger.error("无法打开持久化存储，仅使用内存缓存", error=str(e))
        else:
            restored = await self.cache.load()
        self.initialized = True
        if self.is_configured and not self.batcher.running:
            # 凭据已由环境变量提供时也要排空缺失词条队列
            self.batcher.start(self.config.flush_interval)
        logger.info("引擎初始化完成", restored_cache=restored)

    async def setup(
        self,
        project_id: Any,
        api_key: str,
        locale_signal: Optional[Signal[str]] = None,
        base_locale: str = "en",
        debug: bool = False,
    ) -> ApiResponse:
        """
        配置引擎并校验凭据。应在应用初始化时调用一次；再次调用会替换定时任务与语言订阅。

        Args:
            project_id: 在翻译管理服务中为本应用创建的项目 ID。
            api_key: 与项目 ID 对应的 API 密钥。
            locale_signal: 保存用户所选语言的信号，变化时自动切换翻译。
            base_locale: 代码中书写的源语言。
            debug: 为 True 时输出调试日志。

        Returns:
            凭据校验的结果。这是唯一把错误直接返回给宿主应用的操作。

        """
        if locale_signal is not None and not isinstance(locale_signal, Signal):
            raise ConfigurationError("locale_signal 必须是一个 Signal 实例。")

        await self.initialize()
        config = self.config.with_credentials(project_id, api_key, base_locale, debug)
        if not config.is_configured:
            logger.error("setup 缺少项目 ID 或 API 密钥，引擎保持未配置状态")
            return ApiResponse(status=False, errors=["缺少项目 ID 或 API 密钥"])

        self.config = config
        self._apply_debug(debug)

        self.batcher.start(config.flush_interval)
        if locale_signal is not None:
            self.locale_signal = locale_signal
        self.synchronizer.attach(self.locale_signal)
        logger.info(
            "引擎已配置",
            project_id=config.project_id,
            base_locale=config.base_locale,
        )

        response = await self.api.validate(config)
        if not response.ok:
            logger.error(
                "项目凭据校验失败",
                error_kind=response.error_kind.value,
                errors=response.errors,
            )
        return response

    def _apply_debug(self, debug: bool) -> None:
        """开启时把 trans_relay 日志级别降到 DEBUG，关闭时恢复开启前的级别。"""
        app_logger = logging.getLogger("trans_relay")
        if debug:
            if self._saved_log_level is None:
                self._saved_log_level = app_logger.level
            app_logger.setLevel(logging.DEBUG)
        elif self._saved_log_level is not None:
            app_logger.setLevel(self._saved_log_level)
            self._saved_log_level = None

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    @property
    def active_locale(self) -> str:
        return self.synchronizer.locale or self.config.base_locale

    @property
    def translations(self) -> ReadOnlyTranslations:
        """翻译缓存的只读视图。"""
        return self.cache.view

    def subscribe(self, callback: Callable[[ReadOnlyTranslations], None]) -> Unsubscribe:
        return self.cache.subscribe(callback)

    def resolve(self, full_token: str) -> str:
        return self.resolver.resolve(full_token)

    def set_locale(self, locale: str) -> None:
        """修改当前语言信号，引擎会在后台响应这一变化。"""
        self.locale_signal.set(locale)

    async def refresh(self) -> bool:
        """忽略冷却期，强制重新拉取当前语言的翻译，并清空语言目录缓存。"""
        self._locales_cache.clear()
        locale = self.locale_signal.get() or self.config.base_locale
        return await self.synchronizer.on_locale_change(locale, force=True)

    async def flush(self) -> bool:
        """立即提交一次缺失词条队列。"""
        return await self.batcher.flush()

    async def get_locales(
        self, format: LocaleFormat = "", in_locale: Optional[str] = None
    ) -> LocaleListing:
        """
        获取所有语言代码与名称，名称以 in_locale、当前语言或源语言本地化。

        Args:
            format: '' 按语言名分组，'flat' 为代码/名称列表，'data' 包含完整名称与语言名。
            in_locale: 结果名称使用的语言。

        """
        if format not in _LOCALE_ADAPTERS:
            raise ValueError(f"不支持的语言目录格式: '{format}'")
        locale = in_locale or self.locale_signal.get() or self.config.base_locale
        cache_key = (format, locale)
        cached = self._locales_cache.get(cache_key)
        if cached is not None:
            return cached

        route = f"locales/{locale}" + (f"/{format}" if format else "")
        empty: LocaleListing = {} if format == "" else []
        response = await self.api.get(route)
        if not response.ok:
            logger.warning(
                "获取语言目录失败",
                route=route,
                error_kind=response.error_kind.value,
                errors=response.errors,
            )
            return empty
        try:
            listing: LocaleListing = _LOCALE_ADAPTERS[format].validate_python(
                response.data
            )
        except ValidationError as e:
            logger.warning("语言目录结构无效", route=route, error=str(e))
            return empty

        self._locales_cache[cache_key] = listing
        return listing

    async def get_language_name(
        self, for_locale: str, short_name: bool = False, in_locale: Optional[str] = None
    ) -> str:
        """返回某个语言代码的名称；short_name 为 True 时只返回语言名。"""
        if not for_locale:
            return ""
        listing = await self.get_locales("data", in_locale)
        for entry in listing:
            if isinstance(entry, LocaleData) and entry.code == for_locale:
                return entry.lang_name if short_name else entry.locale_name
        logger.warning("未找到匹配的语言名称", locale=for_locale)
        return ""

    async def close(self) -> None:
        """优雅地停止后台任务并释放所有资源。"""
        if not self.initialized:
            return
        logger.info("开始关闭引擎...")
        await self.batcher.stop()
        await self.synchronizer.close()
        await self.api.close()
        await self.backend.close()
        self.initialized = False
        logger.info("引擎已关闭。")
