"""确认事件的订阅 / 退订机制"""

import logging
from typing import Any, Callable, List

logger = logging.getLogger(__name__)


class EventHook:
    """按订阅顺序回调事件处理函数，单个处理函数异常不影响其它订阅者"""

    def __init__(self, name: str = "event"):
        self.name = name
        self._handlers: List[Callable[[Any], None]] = []

    def subscribe(self, handler: Callable[[Any], None]) -> None:
        """订阅事件，重复订阅同一函数无效"""
        if handler not in self._handlers:
            self._handlers.append(handler)

    def unsubscribe(self, handler: Callable[[Any], None]) -> None:
        """退订事件，未订阅时忽略"""
        if handler in self._handlers:
            self._handlers.remove(handler)

    def emit(self, event: Any) -> None:
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                logger.exception("%s 事件处理函数异常: %r", self.name, handler)

    def __len__(self) -> int:
        return len(self._handlers)
