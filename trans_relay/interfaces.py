# trans_relay/interfaces.py
"""
本模块使用 typing.Protocol 定义了可注入组件的接口协议。

引擎只依赖这些协议，因此宿主应用和测试可以替换远程客户端与持久化后端。
"""

from collections.abc import Iterable
from typing import Any, Optional, Protocol

from trans_relay.config import TransRelayConfig
from trans_relay.types import ApiResponse, MissingTokenRecord


class KeyValueBackend(Protocol):
    """持久化键值后端的纯异步接口协议。值必须可以被 JSON 序列化。"""

    async def connect(self) -> None: ...
    async def close(self) -> None: ...
    async def get(self, name: str) -> Optional[Any]: ...
    async def set(self, name: str, value: Any) -> None: ...
    async def delete(self, name: str) -> None: ...


class TranslationAPI(Protocol):
    """远程翻译管理服务的接口协议。所有方法对预期内的失败都返回结果而不抛出异常。"""

    async def validate(self, config: TransRelayConfig) -> ApiResponse: ...

    async def fetch_all(self, locale: str) -> ApiResponse: ...

    async def submit_missing(
        self, project_id: str, records: Iterable[MissingTokenRecord]
    ) -> ApiResponse: ...

    async def get(self, path: str, data: Optional[dict[str, Any]] = None) -> ApiResponse: ...

    async def close(self) -> None: ...
