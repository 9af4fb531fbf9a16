# trans_relay/resolver.py
"""
本模块提供应用代码调用的同步查找入口。

用法::

    _ = engine.resolver
    title = _("This is my page title")
    label = _("{[UI]} Home")

在词条前加上 `{[分类]}` 标记可以为译者提供上下文，例如把菜单按钮上的 "Home"
与正文里的 "home" 区分开。
"""

import re
from collections.abc import Callable

import structlog

from trans_relay.batcher import MissingTokenBatcher
from trans_relay.cache import TranslationCache
from trans_relay.config import TransRelayConfig
from trans_relay.types import (
    ABSENT,
    CATEGORY_MARKER,
    UNCATEGORIZED,
    MissingTokenRecord,
)

logger = structlog.get_logger(__name__)

CATEGORY_PATTERN = re.compile(r"^\{\[([a-z0-9\s_\-.]*)\]\}\s*", re.IGNORECASE)

# 结构性键名与序列化/内省钩子名，绝不能作为缺失词条上报
RESERVED_TOKENS = frozenset(
    {
        CATEGORY_MARKER,
        UNCATEGORIZED,
        "__DirectToken__",
        "__symbol__",
        "__json__",
        "__html__",
        "__getstate__",
        "__setstate__",
        "__reduce__",
        "__reduce_ex__",
        "__deepcopy__",
        "__copy__",
        "__length_hint__",
    }
)


def parse_full_token(full_token: str) -> tuple[str, str]:
    """拆分出 (分类, 词条)。没有分类标记时分类为空字符串。"""
    match = CATEGORY_PATTERN.match(full_token)
    if match is None:
        return "", full_token
    return match.group(1), full_token[match.end() :]


class Resolver:
    """同步、全函数的翻译查找：从不阻塞，从不抛出，总是返回可显示的字符串。"""

    def __init__(
        self,
        cache: TranslationCache,
        batcher: MissingTokenBatcher,
        config_provider: Callable[[], TransRelayConfig],
    ):
        self.cache = cache
        self.batcher = batcher
        self._config = config_provider

    def __call__(self, full_token: str) -> str:
        return self.resolve(full_token)

    def resolve(self, full_token: str) -> str:
        if not isinstance(full_token, str):
            full_token = str(full_token)
        category, token = parse_full_token(full_token)
        try:
            return self._lookup(category, token)
        except Exception:
            logger.exception("翻译查找失败，回退为原文", full_token=full_token)
            return token

    def _lookup(self, category: str, token: str) -> str:
        if not token:
            # 空词条或只有分类标记时没有可查找或上报的内容
            return token
        config = self._config()
        if not config.is_configured:
            return token

        entry = self.cache.get(category, token)
        if entry is not ABSENT:
            # 待翻译条目（None 或空串）回退为原文，且不再重复上报
            return entry or token

        if token in RESERVED_TOKENS:
            logger.error("拒绝上报保留名称作为缺失词条", token=token, category=category)
            return token

        record = MissingTokenRecord(
            project_id=config.project_id, category=category, token=token
        )
        if self.batcher.enqueue(record):
            logger.debug(
                "词条缺失",
                token=token,
                category=category or UNCATEGORIZED,
                queued=len(self.batcher),
            )
        return token
