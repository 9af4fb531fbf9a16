# tests/unit/test_store.py
"""
针对 `trans_relay.store` 模块的单元测试。

验证持久化写入顺序、写入失败时的降级行为、初始加载以及 SQLite 后端的往返。
"""

from pathlib import Path
from typing import Any, Optional

import pytest

from tests.helpers.fakes import (
    TEST_API_KEY,
    TEST_PROJECT_ID,
    FakeTranslationAPI,
    make_config,
)
from trans_relay.engine import TransRelay
from trans_relay.exceptions import StoreError
from trans_relay.store import (
    DurableStore,
    MemoryKeyValueBackend,
    SQLiteKeyValueBackend,
    create_backend,
)


class BrokenBackend(MemoryKeyValueBackend):
    """所有写操作都会失败的后端。"""

    async def get(self, name: str) -> Optional[Any]:
        raise StoreError("disk on fire")

    async def set(self, name: str, value: Any) -> None:
        raise StoreError("disk full")

    async def delete(self, name: str) -> None:
        raise StoreError("read-only")


@pytest.mark.asyncio
async def test_set_persists_then_notifies() -> None:
    backend = MemoryKeyValueBackend()
    store = DurableStore("greeting", {"text": "hi"}, backend)
    seen: list[Any] = []
    store.subscribe(seen.append)

    await store.set({"text": "hello"})

    assert store.get() == {"text": "hello"}
    assert await backend.get("greeting") == {"text": "hello"}
    assert seen == [{"text": "hi"}, {"text": "hello"}]


@pytest.mark.asyncio
async def test_set_failure_still_updates_memory() -> None:
    """持久化失败不应抛出，内存值仍需更新。"""
    store = DurableStore("greeting", "hi", BrokenBackend())
    await store.set("hello")
    assert store.get() == "hello"


@pytest.mark.asyncio
async def test_clear_resets_to_initial_and_deletes() -> None:
    backend = MemoryKeyValueBackend()
    initial = {"items": []}
    store = DurableStore("bag", initial, backend)
    await store.set({"items": [1, 2]})

    await store.clear()

    assert store.get() == {"items": []}
    assert await backend.get("bag") is None
    # 初始值被深拷贝，外部修改不会影响 clear 的结果
    initial["items"].append(99)
    await store.clear()
    assert store.get() == {"items": []}


@pytest.mark.asyncio
async def test_clear_failure_still_resets_memory() -> None:
    store = DurableStore("bag", 0, BrokenBackend())
    await store.set(5)
    await store.clear()
    assert store.get() == 0


@pytest.mark.asyncio
async def test_load_restores_persisted_value() -> None:
    backend = MemoryKeyValueBackend()
    await backend.set("count", 7)
    store = DurableStore("count", 0, backend)

    assert await store.load() is True
    assert store.get() == 7


@pytest.mark.asyncio
async def test_load_without_persisted_value_keeps_default() -> None:
    store = DurableStore("count", 3, MemoryKeyValueBackend())
    assert await store.load() is False
    assert store.get() == 3


@pytest.mark.asyncio
async def test_load_failure_keeps_default() -> None:
    store = DurableStore("count", 3, BrokenBackend())
    assert await store.load() is False
    assert store.get() == 3


@pytest.mark.asyncio
async def test_load_rejects_value_refused_by_factory() -> None:
    def only_ints(raw: Any) -> int:
        if not isinstance(raw, int):
            raise ValueError("not an int")
        return raw

    backend = MemoryKeyValueBackend()
    await backend.set("count", "garbage")
    store = DurableStore("count", 0, backend, factory=only_ints)

    assert await store.load() is False
    assert store.get() == 0


@pytest.mark.asyncio
async def test_memory_backend_rejects_unserializable_values() -> None:
    with pytest.raises(StoreError):
        await MemoryKeyValueBackend().set("bad", {"obj": object()})


@pytest.mark.asyncio
async def test_sqlite_backend_round_trip_across_connections(tmp_path: Path) -> None:
    db_path = str(tmp_path / "relay.db")
    backend = SQLiteKeyValueBackend(db_path)
    await backend.connect()
    await backend.set("translations", {"Menu": {"Home": "Accueil"}})
    await backend.set("translations", {"Menu": {"Home": "Maison"}})
    await backend.close()

    reopened = SQLiteKeyValueBackend(db_path)
    try:
        assert await reopened.get("translations") == {"Menu": {"Home": "Maison"}}
        await reopened.delete("translations")
        assert await reopened.get("translations") is None
    finally:
        await reopened.close()


@pytest.mark.asyncio
async def test_sqlite_backend_unopenable_path_raises_store_error(tmp_path: Path) -> None:
    backend = SQLiteKeyValueBackend(str(tmp_path / "missing" / "dir" / "relay.db"))
    with pytest.raises(StoreError):
        await backend.connect()


@pytest.mark.asyncio
async def test_engine_setup_survives_unopenable_store(tmp_path: Path) -> None:
    """无法打开数据库时，引擎降级为内存缓存，setup 仍然返回校验结果。"""
    api = FakeTranslationAPI({"fr": {"__uncategorized__": {"Home": "Accueil"}}})
    config = make_config(
        configured=False, store_path=str(tmp_path / "missing" / "relay.db")
    )
    engine = TransRelay(config=config, api=api)
    try:
        response = await engine.setup(TEST_PROJECT_ID, TEST_API_KEY)
        assert response.ok
        assert engine.initialized

        assert await engine.refresh() is False  # en 不存在
        engine.set_locale("fr")
        await engine.synchronizer.wait_idle()
        assert engine.resolve("Home") == "Accueil"
    finally:
        await engine.close()


def test_create_backend_selects_implementation() -> None:
    assert isinstance(create_backend(":memory:"), MemoryKeyValueBackend)
    assert isinstance(create_backend("relay.db"), SQLiteKeyValueBackend)
