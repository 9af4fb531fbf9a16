# tests/unit/cli/test_cli_logging.py
import json

from pytest_mock import MockerFixture
from typer.testing import CliRunner

from tests.helpers.fakes import FakeTranslationAPI
from trans_relay.cli import app
from trans_relay.engine import TransRelay
from trans_relay.store import MemoryKeyValueBackend


def test_logging_configuration_applied_json(mocker: MockerFixture) -> None:
    runner = CliRunner()
    mocker.patch(
        "trans_relay.cli.main.create_engine",
        side_effect=lambda config: TransRelay(
            config, api=FakeTranslationAPI(), backend=MemoryKeyValueBackend()
        ),
    )

    result = runner.invoke(
        app,
        ["validate"],
        env={
            "TR_PROJECT_ID": "42",
            "TR_API_KEY": "test-key",
            "TR_LOGGING__FORMAT": "json",
        },
    )

    assert result.exit_code == 0
    found = False
    for line in result.output.splitlines():
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            continue
        if data.get("event") == "日志系统已配置完成。":
            assert data.get("log_format") == "json"
            assert data.get("app_log_level") == "INFO"
            found = True
            break
    assert found, "logging setup message not found"
