# trans_relay/cache.py
"""本模块提供按分类组织的翻译缓存，并通过 DurableStore 持久化。"""

import asyncio
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any, Callable, Optional, Union

import structlog

from trans_relay.interfaces import KeyValueBackend
from trans_relay.signal import Unsubscribe
from trans_relay.store import DurableStore
from trans_relay.types import (
    ABSENT,
    CATEGORY_MARKER,
    UNCATEGORIZED,
    EntryState,
    TranslationPayload,
    _Absent,
)

logger = structlog.get_logger(__name__)

ReadOnlyTranslations = Mapping[str, Mapping[str, Optional[str]]]
Entry = Union[str, None, _Absent]


def initial_payload() -> TranslationPayload:
    """只包含 `__uncategorized__` 分类的空缓存。"""
    return {UNCATEGORIZED: {CATEGORY_MARKER: UNCATEGORIZED}}


def normalize_payload(payload: Any) -> TranslationPayload:
    """
    校验远程或持久化的翻译载荷并返回一个规范化的新字典。

    规则：顶层为 分类 -> 映射，映射为 词条 -> 字符串或 None；每个分类都带上
    指向自身的 `__category__` 标记，并且 `__uncategorized__` 分类一定存在。
    空列表被视为空映射（部分后端对空对象会序列化为 `[]`）。

    Raises:
        ValueError: 当载荷结构不符合预期时。

    """
    if isinstance(payload, list) and not payload:
        payload = {}
    if not isinstance(payload, Mapping):
        raise ValueError(f"翻译载荷必须是映射，实际为 {type(payload).__name__}")

    normalized: TranslationPayload = {}
    for category, entries in payload.items():
        if not isinstance(category, str):
            raise ValueError(f"分类名必须是字符串: {category!r}")
        if isinstance(entries, list) and not entries:
            entries = {}
        if not isinstance(entries, Mapping):
            raise ValueError(f"分类 '{category}' 的内容必须是映射")
        bucket: dict[str, Optional[str]] = {}
        for token, translation in entries.items():
            if token == CATEGORY_MARKER:
                continue
            if not isinstance(token, str):
                raise ValueError(f"分类 '{category}' 中存在非字符串词条: {token!r}")
            if translation is not None and not isinstance(translation, str):
                raise ValueError(
                    f"词条 '{token}' 的译文必须是字符串或 null，实际为 "
                    f"{type(translation).__name__}"
                )
            bucket[token] = translation
        bucket[CATEGORY_MARKER] = category
        normalized[category] = bucket

    normalized.setdefault(UNCATEGORIZED, {CATEGORY_MARKER: UNCATEGORIZED})
    return normalized


def freeze(payload: TranslationPayload) -> ReadOnlyTranslations:
    return MappingProxyType(
        {category: MappingProxyType(entries) for category, entries in payload.items()}
    )


class TranslationCache:
    """
    分类 -> 词条 -> 译文 的内存缓存。

    所有修改都在锁内基于当时的状态构造一个新字典，再通过一次 `store.set`
    提交，因此订阅者永远不会看到半完成的状态。
    """

    def __init__(self, store: DurableStore[TranslationPayload]):
        self.store = store
        self._lock = asyncio.Lock()

    @classmethod
    def create_store(
        cls, name: str, backend: KeyValueBackend
    ) -> DurableStore[TranslationPayload]:
        """为缓存创建一个带载荷校验的持久化存储。"""
        return DurableStore(name, initial_payload(), backend, factory=normalize_payload)

    @property
    def view(self) -> ReadOnlyTranslations:
        """当前缓存的只读快照。"""
        return freeze(self.store.get())

    @property
    def categories(self) -> list[str]:
        return list(self.store.get())

    def subscribe(self, callback: Callable[[ReadOnlyTranslations], None]) -> Unsubscribe:
        return self.store.subscribe(lambda payload: callback(freeze(payload)))

    def get(self, category: str, token: str) -> Entry:
        """纯查找，没有副作用。空分类表示 `__uncategorized__`。"""
        entries = self.store.get().get(category or UNCATEGORIZED)
        if entries is None or token == CATEGORY_MARKER:
            return ABSENT
        return entries.get(token, ABSENT)

    def state(self, category: str, token: str) -> EntryState:
        entry = self.get(category, token)
        if entry is ABSENT:
            return EntryState.ABSENT
        if not entry:
            return EntryState.PENDING
        return EntryState.RESOLVED

    async def load(self) -> bool:
        return await self.store.load()

    async def replace(self, payload: Any) -> bool:
        """整体替换缓存。载荷无效时保留原有缓存并返回 False。"""
        try:
            normalized = normalize_payload(payload)
        except ValueError as e:
            logger.error("翻译载荷结构无效，保留现有缓存", error=str(e))
            return False
        async with self._lock:
            await self.store.set(normalized)
        logger.debug(
            "翻译缓存已整体替换",
            categories=len(normalized),
            tokens=sum(len(entries) - 1 for entries in normalized.values()),
        )
        return True

    async def mark_pending(self, category: str, token: str) -> bool:
        """若条目不存在，则插入一个待翻译标记。"""
        return await self.mark_many_pending([(category, token)]) > 0

    async def mark_many_pending(self, pairs: Iterable[tuple[str, str]]) -> int:
        """把一批 (分类, 词条) 作为一次修改标记为待翻译，返回新插入的数量。"""
        async with self._lock:
            current = self.store.get()
            updated = dict(current)
            inserted = 0
            for category, token in pairs:
                category = category or UNCATEGORIZED
                if token == CATEGORY_MARKER:
                    continue
                entries = updated.get(category)
                if entries is not None and token in entries:
                    continue
                if entries is None or entries is current.get(category):
                    # 写时复制，不修改已经发布给订阅者的字典
                    entries = dict(entries or {CATEGORY_MARKER: category})
                    updated[category] = entries
                entries[token] = None
                inserted += 1
            if inserted:
                await self.store.set(updated)
        return inserted

    async def clear(self) -> None:
        async with self._lock:
            await self.store.clear()
