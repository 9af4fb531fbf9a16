# trans_relay/config.py

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from trans_relay.utils import validate_lang_code

DEFAULT_API_URL = "https://api.langsys.dev/api"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: Literal["json", "console"] = "console"


class HttpConfig(BaseModel):
    timeout_total: float = Field(default=30.0, gt=0)
    timeout_connect: float = Field(default=5.0, gt=0)


class LocalesCacheConfig(BaseModel):
    """语言目录查询结果的缓存配置。"""

    maxsize: int = Field(default=32, gt=0)
    ttl: int = Field(default=3600, gt=0)


class TransRelayConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TR_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    project_id: str = ""
    api_key: Optional[SecretStr] = None
    base_locale: str = "en"
    debug: bool = False

    api_url: str = DEFAULT_API_URL
    flush_interval: float = Field(
        default=3.0, description="缺失词条批量提交的间隔（秒）", gt=0
    )
    locale_cooldown: float = Field(
        default=60.0, description="同一语言两次全量拉取之间的最短间隔（秒）", ge=0
    )
    store_path: str = "trans_relay.db"
    store_key: str = "translations"

    http: HttpConfig = Field(default_factory=HttpConfig)
    locales_cache: LocalesCacheConfig = Field(default_factory=LocalesCacheConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("base_locale")
    @classmethod
    def validate_base_locale(cls, v: str) -> str:
        return validate_lang_code(v)

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def api_key_value(self) -> str:
        return self.api_key.get_secret_value() if self.api_key else ""

    @property
    def is_configured(self) -> bool:
        """项目 ID 与 API 密钥都已设置时，引擎才会真正工作。"""
        return bool(self.project_id) and bool(self.api_key_value)

    def with_credentials(
        self,
        project_id: Any,
        api_key: str,
        base_locale: Optional[str] = None,
        debug: Optional[bool] = None,
    ) -> "TransRelayConfig":
        """返回一个带有新凭据的配置副本，原配置对象保持不变。"""
        update: dict[str, Any] = {
            "project_id": str(project_id) if project_id is not None else "",
            "api_key": SecretStr(api_key) if api_key else None,
        }
        if base_locale is not None:
            update["base_locale"] = validate_lang_code(base_locale)
        if debug is not None:
            update["debug"] = debug
        return self.model_copy(update=update)
