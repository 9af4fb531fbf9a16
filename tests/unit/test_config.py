# tests/unit/test_config.py
"""针对 `trans_relay.config` 模块的单元测试。"""

import pytest
from pydantic import ValidationError

from trans_relay.config import TransRelayConfig


def test_defaults_are_unconfigured() -> None:
    config = TransRelayConfig(_env_file=None)
    assert config.base_locale == "en"
    assert config.flush_interval == 3.0
    assert config.locale_cooldown == 60.0
    assert config.is_configured is False
    assert config.api_key_value == ""


def test_is_configured_requires_both_credentials() -> None:
    assert not TransRelayConfig(_env_file=None, project_id="42").is_configured
    assert not TransRelayConfig(_env_file=None, api_key="k").is_configured
    assert TransRelayConfig(_env_file=None, project_id="42", api_key="k").is_configured


def test_project_id_accepts_numbers() -> None:
    assert TransRelayConfig(_env_file=None, project_id=7).project_id == "7"


def test_reads_prefixed_environment_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TR_PROJECT_ID", "abc")
    monkeypatch.setenv("TR_API_KEY", "secret")
    monkeypatch.setenv("TR_LOGGING__FORMAT", "json")
    monkeypatch.setenv("TR_HTTP__TIMEOUT_TOTAL", "2.5")

    config = TransRelayConfig(_env_file=None)

    assert config.is_configured
    assert config.api_key_value == "secret"
    assert config.logging.format == "json"
    assert config.http.timeout_total == 2.5


def test_api_key_is_not_leaked_in_repr() -> None:
    config = TransRelayConfig(_env_file=None, project_id="1", api_key="super-secret")
    assert "super-secret" not in repr(config)


def test_invalid_base_locale_is_rejected() -> None:
    with pytest.raises(ValidationError):
        TransRelayConfig(_env_file=None, base_locale="german")


@pytest.mark.parametrize("field", ["flush_interval", "locales_cache"])
def test_non_positive_values_are_rejected(field: str) -> None:
    value = 0 if field == "flush_interval" else {"maxsize": 0}
    with pytest.raises(ValidationError):
        TransRelayConfig(_env_file=None, **{field: value})


def test_with_credentials_returns_updated_copy() -> None:
    original = TransRelayConfig(_env_file=None)
    updated = original.with_credentials(99, "key", base_locale="fr", debug=True)

    assert updated.is_configured
    assert updated.project_id == "99"
    assert updated.base_locale == "fr"
    assert updated.debug is True
    assert original.is_configured is False


def test_with_credentials_validates_base_locale() -> None:
    with pytest.raises(ValueError):
        TransRelayConfig(_env_file=None).with_credentials("1", "k", base_locale="123")


def test_api_url_trailing_slash_is_stripped() -> None:
    config = TransRelayConfig(_env_file=None, api_url="https://example.test/api/")
    assert config.api_url == "https://example.test/api"
