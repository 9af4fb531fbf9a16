# trans_relay/api.py
"""提供访问远程翻译管理服务的异步 HTTP 客户端。"""

import json
from collections.abc import Iterable
from typing import Any, Literal, Optional

import httpx
import structlog
from pydantic import ValidationError

from trans_relay.config import TransRelayConfig
from trans_relay.types import ApiResponse, HttpInfo, MissingTokenRecord
from trans_relay.utils import fill_project_placeholder

logger = structlog.get_logger(__name__)

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]


class TransRelayAPI:
    """
    远程翻译服务的薄请求层。

    每个请求都会附带 `x-Authorization` 头，并把响应归一化为 `ApiResponse`。
    网络异常、无法解析的响应体以及非 2xx 状态码都不会抛出，而是体现在返回的
    `ApiResponse.error_kind` 中。
    """

    def __init__(
        self,
        config: TransRelayConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json; charset=utf-8",
            "Accept": "application/json",
            "x-Authorization": self.config.api_key_value,
        }

    def setup(self, config: TransRelayConfig) -> None:
        """仅当项目 ID 与密钥都存在时才接受新配置。"""
        if config.is_configured:
            self.config = config

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            timeout = httpx.Timeout(
                self.config.http.timeout_total,
                connect=self.config.http.timeout_connect,
            )
            self._client = httpx.AsyncClient(
                base_url=self.config.api_url + "/",
                timeout=timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def validate(self, config: TransRelayConfig) -> ApiResponse:
        """应用凭据并确认项目 ID 与密钥已获授权。"""
        self.setup(config)
        return await self.get("authorize-project/[projectid]")

    async def fetch_all(self, locale: str) -> ApiResponse:
        """获取某个语言的完整 分类/词条/译文 集合。"""
        return await self.get(f"projects/[projectid]/translations/{locale}")

    async def submit_missing(
        self, project_id: str, records: Iterable[MissingTokenRecord]
    ) -> ApiResponse:
        """提交一批尚未翻译的词条。重复提交同一批次是安全的。"""
        payload = [record.to_payload() for record in records]
        return await self.post(f"projects/{project_id}/tokens", payload)

    async def get(self, path: str, data: Optional[dict[str, Any]] = None) -> ApiResponse:
        return await self.send("GET", path, data)

    async def post(self, path: str, data: Any = None) -> ApiResponse:
        return await self.send("POST", path, data)

    async def put(self, path: str, data: Any = None) -> ApiResponse:
        return await self.send("PUT", path, data)

    async def patch(self, path: str, data: Any = None) -> ApiResponse:
        return await self.send("PATCH", path, data)

    async def delete(self, path: str, data: Any = None) -> ApiResponse:
        return await self.send("DELETE", path, data)

    async def send(self, method: HttpMethod, path: str, data: Any = None) -> ApiResponse:
        path = fill_project_placeholder(path, self.config.project_id)
        data = {} if data is None else data
        request_kwargs: dict[str, Any] = {"headers": self.headers}
        if method == "GET":
            if data:
                request_kwargs["params"] = data
        else:
            request_kwargs["content"] = json.dumps(data, ensure_ascii=False).encode(
                "utf-8"
            )

        try:
            response = await self._get_client().request(method, path, **request_kwargs)
        except httpx.HTTPError as e:
            logger.error(
                "与翻译服务通信失败", method=method, path=path, error=str(e)
            )
            return ApiResponse(status=False, errors=[str(e)])

        http = HttpInfo(
            status=response.status_code,
            status_text=response.reason_phrase,
            url=str(response.url),
            data=json.dumps(data, ensure_ascii=False),
        )
        try:
            body = response.json()
        except ValueError:
            logger.error(
                "翻译服务返回了无法解析的响应体",
                method=method,
                path=path,
                http_status=response.status_code,
            )
            # 成功状态码配上坏的响应体按传输错误处理，其余保留状态码以便分类
            return ApiResponse(
                status=False,
                errors=["响应体不是合法的 JSON"],
                http=None if response.is_success else http,
            )

        if not isinstance(body, dict):
            body = {"status": response.is_success, "data": body}
        try:
            result = ApiResponse.model_validate({**body, "http": http})
        except ValidationError as e:
            logger.error("翻译服务的响应结构无效", path=path, error=str(e))
            return ApiResponse(status=False, errors=["响应结构无效"], http=http)

        if not response.is_success:
            logger.warning(
                "翻译服务请求未成功",
                method=method,
                path=path,
                http_status=response.status_code,
                errors=result.errors,
            )
        return result
