# trans_relay/signal.py
"""本模块提供一个最小的响应式值容器，语义与前端框架中的可写 store 一致。"""

from collections.abc import Callable
from typing import Generic, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Subscriber = Callable[[T], None]
Unsubscribe = Callable[[], None]


class Signal(Generic[T]):
    """
    一个可订阅的值单元。

    订阅时会立即收到当前值，之后每次 `set` 都会同步通知所有订阅者。
    订阅者抛出的异常会被记录，但不会中断对其余订阅者的通知。
    """

    def __init__(self, initial: T):
        self._value = initial
        self._subscribers: list[Subscriber[T]] = []

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        self._notify()

    def subscribe(self, callback: Subscriber[T]) -> Unsubscribe:
        self._subscribers.append(callback)
        self._deliver(callback, self._value)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def _notify(self) -> None:
        # 复制一份列表，允许订阅者在回调中取消订阅
        for callback in list(self._subscribers):
            self._deliver(callback, self._value)

    def _deliver(self, callback: Subscriber[T], value: T) -> None:
        try:
            callback(value)
        except Exception:
            logger.exception("订阅者回调执行失败", subscriber=repr(callback))
