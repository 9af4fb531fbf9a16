# trans_relay/exceptions.py
"""
本模块定义了 Trans-Relay 项目中所有自定义的、语义化的异常类型。

绝大多数可恢复的错误在组件边界处被捕获并记录日志，不会抛给宿主应用；
这些异常主要用于组件内部的错误传递，以及少数必须让调用者知晓的编程错误。
"""


class TransRelayError(Exception):
    """所有 Trans-Relay 自定义异常的通用基类。"""

    pass


class ConfigurationError(TransRelayError):
    """
    表示配置缺失或不正确。
    例如，setup 收到的语言信号不是 Signal 实例。
    """

    pass


class StoreError(TransRelayError):
    """
    表示持久化键值存储的读写失败。
    DurableStore 会捕获此异常并仅记录日志，保证内存中的值仍然更新。
    """

    pass


class APIError(TransRelayError):
    """
    表示与远程翻译管理服务交互时发生的错误。
    客户端本身从不抛出此异常，CLI 用它把失败的响应转换为退出码。
    """

    pass
