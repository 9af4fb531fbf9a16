# trans_relay/types.py
"""
本模块定义了 Trans-Relay 系统的核心数据类型。

翻译缓存本身是普通的嵌套字典（便于 JSON 持久化），其余在组件之间传递的
结构化数据均使用 Pydantic 模型。
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNCATEGORIZED = "__uncategorized__"
"""未带分类标记的词条所属的哨兵分类，始终存在于缓存中。"""

CATEGORY_MARKER = "__category__"
"""每个分类映射中指向自身分类名的结构性标记键。"""

TranslationMap = dict[str, Optional[str]]
TranslationPayload = dict[str, dict[str, Optional[str]]]


class _Absent(Enum):
    TOKEN = "ABSENT"

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = _Absent.TOKEN
"""缓存查找未命中时返回的哨兵值，区别于表示“待翻译”的 None。"""


class EntryState(str, Enum):
    """翻译条目在缓存中的状态。"""

    ABSENT = "ABSENT"
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"


class ErrorKind(str, Enum):
    """远程调用结果的归一化分类。"""

    NONE = "NONE"
    NETWORK = "NETWORK"
    UNAUTHORIZED = "UNAUTHORIZED"
    VALIDATION = "VALIDATION"
    HTTP = "HTTP"
    REJECTED = "REJECTED"


class BatcherState(str, Enum):
    """缺失词条批处理器的状态机。"""

    IDLE = "IDLE"
    FLUSHING = "FLUSHING"


class HttpInfo(BaseModel):
    """附加在每个 API 响应上的 HTTP 元数据。"""

    status: int
    status_text: str = ""
    url: str = ""
    data: str = ""


class ApiResponse(BaseModel):
    """远程翻译服务的归一化响应信封。客户端从不为预期内的失败抛出异常。"""

    model_config = ConfigDict(extra="ignore")

    status: bool = False
    page: Optional[int] = None
    page_count: Optional[int] = None
    records_per_page: Optional[int] = None
    data: Any = None
    errors: Optional[list[str]] = None
    http: Optional[HttpInfo] = None

    @field_validator("errors", mode="before")
    @classmethod
    def _flatten_errors(cls, v: Any) -> Optional[list[str]]:
        # 服务端的 422 响应可能返回 {"field": ["msg", ...]} 形式的错误
        if v is None:
            return None
        if isinstance(v, str):
            return [v]
        if isinstance(v, dict):
            flat: list[str] = []
            for field, messages in v.items():
                if isinstance(messages, (list, tuple)):
                    flat.extend(f"{field}: {m}" for m in messages)
                else:
                    flat.append(f"{field}: {messages}")
            return flat
        if isinstance(v, (list, tuple)):
            return [str(item) for item in v]
        return [str(v)]

    @property
    def error_kind(self) -> ErrorKind:
        """根据 HTTP 状态码与 status 标志对结果进行分类。"""
        if self.http is None:
            return ErrorKind.NONE if self.status else ErrorKind.NETWORK
        code = self.http.status
        if code == 401:
            return ErrorKind.UNAUTHORIZED
        if code == 422:
            return ErrorKind.VALIDATION
        if not 200 <= code < 300:
            return ErrorKind.HTTP
        if not self.status:
            return ErrorKind.REJECTED
        return ErrorKind.NONE

    @property
    def ok(self) -> bool:
        return self.error_kind is ErrorKind.NONE


class MissingTokenRecord(BaseModel):
    """一条等待提交给服务端的缺失词条记录。"""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    project_id: str
    category: str = ""
    token: str

    @property
    def key(self) -> tuple[str, str]:
        """去重键：(分类, 词条)。"""
        return (self.category, self.token)

    def to_payload(self) -> dict[str, str]:
        return {
            "projectid": self.project_id,
            "category": self.category,
            "token": self.token,
        }


class LocaleFlat(BaseModel):
    """扁平格式的语言区域条目。"""

    model_config = ConfigDict(extra="ignore")

    code: str
    name: str


class LocaleData(BaseModel):
    """包含完整名称与语言名称的语言区域条目。"""

    model_config = ConfigDict(extra="ignore")

    code: str
    locale_name: str = Field(default="")
    lang_name: str = Field(default="")


LocaleListing = Union[dict[str, list[LocaleFlat]], list[LocaleFlat], list[LocaleData]]
