# trans_relay/store.py
"""
本模块提供持久化的响应式键值存储。

`DurableStore` 包装一个具名的值：每次修改都会先写入后端，再更新内存并通知订阅者。
写入失败不会向调用者抛出，只记录日志，内存中的值仍然更新（单进程单写者，后写者胜）。
"""

import asyncio
import copy
import json
from collections.abc import Callable
from typing import Any, Generic, Optional, TypeVar

import aiosqlite
import structlog

from trans_relay.exceptions import StoreError
from trans_relay.interfaces import KeyValueBackend
from trans_relay.signal import Signal, Subscriber, Unsubscribe

logger = structlog.get_logger(__name__)

T = TypeVar("T")

_CREATE_TABLE_SQL = (
    "CREATE TABLE IF NOT EXISTS kv_store ("
    " name TEXT PRIMARY KEY,"
    " value TEXT NOT NULL,"
    " updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP"
    ")"
)


class MemoryKeyValueBackend:
    """`KeyValueBackend` 的内存实现，值在写入时经过 JSON 往返以模拟真实持久化。"""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def connect(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def get(self, name: str) -> Optional[Any]:
        raw = self._data.get(name)
        return None if raw is None else json.loads(raw)

    async def set(self, name: str, value: Any) -> None:
        try:
            self._data[name] = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StoreError(f"值无法序列化: {e}") from e

    async def delete(self, name: str) -> None:
        self._data.pop(name, None)


class SQLiteKeyValueBackend:
    """`KeyValueBackend` 的 SQLite 实现，使用单表存储 JSON 编码的值。"""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn: Optional[aiosqlite.Connection] = None
        self._connect_lock = asyncio.Lock()

    async def connect(self) -> None:
        async with self._connect_lock:
            if self._conn is not None:
                return
            try:
                self._conn = await aiosqlite.connect(self.db_path)
                if self.db_path != ":memory:":
                    await self._conn.execute("PRAGMA journal_mode=WAL;")
                await self._conn.execute(_CREATE_TABLE_SQL)
                await self._conn.commit()
            except (aiosqlite.Error, OSError) as e:
                self._conn = None
                raise StoreError(f"无法打开键值存储 '{self.db_path}': {e}") from e
        logger.debug("SQLite 键值存储已连接", db_path=self.db_path)

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    async def _connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            await self.connect()
        assert self._conn is not None
        return self._conn

    async def get(self, name: str) -> Optional[Any]:
        conn = await self._connection()
        try:
            async with conn.execute(
                "SELECT value FROM kv_store WHERE name = ?", (name,)
            ) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StoreError(f"读取 '{name}' 失败: {e}") from e
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            raise StoreError(f"'{name}' 的持久化内容已损坏: {e}") from e

    async def set(self, name: str, value: Any) -> None:
        try:
            encoded = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StoreError(f"值无法序列化: {e}") from e
        conn = await self._connection()
        try:
            await conn.execute(
                "INSERT INTO kv_store (name, value) VALUES (?, ?) "
                "ON CONFLICT(name) DO UPDATE SET value = excluded.value, "
                "updated_at = CURRENT_TIMESTAMP",
                (name, encoded),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            raise StoreError(f"写入 '{name}' 失败: {e}") from e

    async def delete(self, name: str) -> None:
        conn = await self._connection()
        try:
            await conn.execute("DELETE FROM kv_store WHERE name = ?", (name,))
            await conn.commit()
        except aiosqlite.Error as e:
            raise StoreError(f"删除 '{name}' 失败: {e}") from e


def create_backend(store_path: str) -> KeyValueBackend:
    """根据路径创建后端；`:memory:` 选择纯内存实现。"""
    if store_path == ":memory:":
        return MemoryKeyValueBackend()
    return SQLiteKeyValueBackend(store_path)


class DurableStore(Generic[T]):
    """一个持久化的响应式值单元。"""

    def __init__(
        self,
        name: str,
        initial: T,
        backend: KeyValueBackend,
        factory: Optional[Callable[[Any], T]] = None,
    ):
        self.name = name
        self.backend = backend
        self._initial = copy.deepcopy(initial)
        self._factory = factory
        self._signal: Signal[T] = Signal(copy.deepcopy(initial))

    def get(self) -> T:
        return self._signal.get()

    def subscribe(self, callback: Subscriber[T]) -> Unsubscribe:
        return self._signal.subscribe(callback)

    async def load(self) -> bool:
        """从后端加载持久化的值。仅当存在已保存的值时才替换内存值。"""
        try:
            raw = await self.backend.get(self.name)
        except (StoreError, aiosqlite.Error, OSError) as e:
            logger.error("从持久化存储加载失败，继续使用默认值", store=self.name, error=str(e))
            return False
        if raw is None:
            return False
        try:
            value = self._factory(raw) if self._factory else raw
        except (TypeError, ValueError) as e:
            logger.error("持久化内容格式无效，已忽略", store=self.name, error=str(e))
            return False
        self._signal.set(value)
        logger.debug("已从持久化存储恢复值", store=self.name)
        return True

    async def set(self, value: T) -> None:
        try:
            await self.backend.set(self.name, value)
        except (StoreError, aiosqlite.Error, OSError) as e:
            logger.error("持久化写入失败，仅更新内存值", store=self.name, error=str(e))
        self._signal.set(value)

    async def clear(self) -> None:
        try:
            await self.backend.delete(self.name)
        except (StoreError, aiosqlite.Error, OSError) as e:
            logger.error("删除持久化值失败", store=self.name, error=str(e))
        self._signal.set(copy.deepcopy(self._initial))
