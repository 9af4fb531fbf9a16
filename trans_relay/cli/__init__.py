# trans_relay/cli/__init__.py
"""Trans-Relay 命令行接口。"""

from trans_relay.cli.main import app

__all__ = ["app"]
