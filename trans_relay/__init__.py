# trans_relay/__init__.py
"""Trans-Relay: 一个可嵌入的运行时翻译解析引擎，自动把缺失词条同步给翻译管理服务。

该模块导出引擎门面、配置模型与可注入的组件，宿主应用通常只需要::

    engine = TransRelay()
    await engine.setup(project_id, api_key, locale_signal)
    _ = engine.resolver
"""

__version__ = "1.0.0"

from .api import TransRelayAPI
from .config import TransRelayConfig
from .engine import TransRelay
from .signal import Signal
from .store import DurableStore, MemoryKeyValueBackend, SQLiteKeyValueBackend
from .types import UNCATEGORIZED, ApiResponse, EntryState, ErrorKind, MissingTokenRecord

__all__ = [
    "__version__",
    "TransRelay",
    "TransRelayConfig",
    "TransRelayAPI",
    "Signal",
    "DurableStore",
    "MemoryKeyValueBackend",
    "SQLiteKeyValueBackend",
    "ApiResponse",
    "EntryState",
    "ErrorKind",
    "MissingTokenRecord",
    "UNCATEGORIZED",
]
