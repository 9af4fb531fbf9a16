# tests/helpers/fakes.py
"""提供可预测的测试替身：远程翻译服务、时钟与配置工厂。"""

from __future__ import annotations

import copy
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, Optional

from trans_relay.config import TransRelayConfig
from trans_relay.types import ApiResponse, HttpInfo, MissingTokenRecord

TEST_PROJECT_ID = "42"
TEST_API_KEY = "test-key"


def make_config(configured: bool = True, **overrides: Any) -> TransRelayConfig:
    """创建一个不读取 .env 的配置；默认带凭据并使用内存存储。"""
    values: dict[str, Any] = {"store_path": ":memory:", "flush_interval": 3.0}
    if configured:
        values.update(project_id=TEST_PROJECT_ID, api_key=TEST_API_KEY)
    values.update(overrides)
    return TransRelayConfig(_env_file=None, **values)


def ok(data: Any = None) -> ApiResponse:
    return ApiResponse(status=True, data=data, http=HttpInfo(status=200, status_text="OK"))


def failed(status: int, *errors: str) -> ApiResponse:
    return ApiResponse(
        status=False, errors=list(errors) or None, http=HttpInfo(status=status)
    )


def network_error() -> ApiResponse:
    return ApiResponse(status=False, errors=["connection refused"])


class FakeClock:
    """一个可以手动拨动的单调时钟。"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTranslationAPI:
    """`TranslationAPI` 协议的内存实现，记录所有调用。"""

    def __init__(self, translations: Optional[dict[str, Any]] = None):
        self.translations = translations or {}
        self.routes: dict[str, Any] = {}
        self.fetch_calls: list[str] = []
        self.get_calls: list[str] = []
        self.submitted: list[list[MissingTokenRecord]] = []
        self.validated: list[TransRelayConfig] = []
        self.validate_response = ok()
        self.submit_response = ok()
        self.fetch_response: Optional[ApiResponse] = None
        self.submit_hook: Optional[Callable[[list[MissingTokenRecord]], Awaitable[None]]] = None
        self.closed = False

    async def validate(self, config: TransRelayConfig) -> ApiResponse:
        self.validated.append(config)
        return self.validate_response

    async def fetch_all(self, locale: str) -> ApiResponse:
        self.fetch_calls.append(locale)
        if self.fetch_response is not None:
            return self.fetch_response
        if locale not in self.translations:
            return failed(404, f"locale {locale} not found")
        return ok(copy.deepcopy(self.translations[locale]))

    async def submit_missing(
        self, project_id: str, records: Iterable[MissingTokenRecord]
    ) -> ApiResponse:
        batch = list(records)
        if self.submit_hook is not None:
            await self.submit_hook(batch)
        self.submitted.append(batch)
        return self.submit_response

    async def get(self, path: str, data: Optional[dict[str, Any]] = None) -> ApiResponse:
        self.get_calls.append(path)
        if path not in self.routes:
            return failed(404)
        return ok(copy.deepcopy(self.routes[path]))

    async def close(self) -> None:
        self.closed = True

    @property
    def submitted_keys(self) -> list[list[tuple[str, str]]]:
        return [[record.key for record in batch] for batch in self.submitted]
