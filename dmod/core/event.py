"""
DMod 处理器注册

每个 Schema 持有一个 HandlerRegistry：

持久化事件（每个事件只允许一个处理器，通常由 Database 绑定到适配器）：
- create / update

通知事件（可注册多个监听器）：
- ready：所有表 DDL 完成且关联解析后触发
- saved：记录保存成功并提交变更后触发

使用方式：
    schema.handlers.set_handler('create', adapter_create)
    schema.handlers.listen('saved', lambda record: print(record.to_dict()))
"""

from typing import Any, Callable, Dict, List, Optional, Set

from ..common.exceptions import HandlerRegistrationError


PERSIST_EVENTS: Set[str] = {'create', 'update'}
NOTIFY_EVENTS: Set[str] = {'ready', 'saved'}
ALL_EVENTS: Set[str] = PERSIST_EVENTS | NOTIFY_EVENTS


class HandlerRegistry:
    """单个 Schema 的处理器与监听器表"""

    def __init__(self, owner: Optional[str] = None) -> None:
        self.owner = owner
        self._handlers: Dict[str, Callable[..., Any]] = {}
        self._listeners: Dict[str, List[Callable[..., Any]]] = {}

    def set_handler(self, event_name: str, fn: Callable[..., Any], replace: bool = False) -> None:
        """
        注册持久化处理器

        Args:
            event_name: 'create' 或 'update'
            fn: 处理器
            replace: 是否允许覆盖已注册的处理器

        Raises:
            HandlerRegistrationError: 事件名非法，或已有处理器且 replace=False
        """
        if event_name not in PERSIST_EVENTS:
            raise HandlerRegistrationError(
                f"Unknown persistence event: '{event_name}'. "
                f"Valid events: {', '.join(sorted(PERSIST_EVENTS))}",
                schema_name=self.owner
            )
        if event_name in self._handlers and not replace:
            raise HandlerRegistrationError(
                f"A '{event_name}' handler is already registered",
                schema_name=self.owner
            )
        self._handlers[event_name] = fn

    def get_handler(self, event_name: str) -> Optional[Callable[..., Any]]:
        return self._handlers.get(event_name)

    def has_handler(self, event_name: str) -> bool:
        return event_name in self._handlers

    def listen(self, event_name: str, fn: Callable[..., Any]) -> None:
        """注册通知监听器"""
        if event_name not in NOTIFY_EVENTS:
            raise HandlerRegistrationError(
                f"Unknown event: '{event_name}'. "
                f"Valid events: {', '.join(sorted(NOTIFY_EVENTS))}",
                schema_name=self.owner
            )
        self._listeners.setdefault(event_name, []).append(fn)

    def listens_for(self, event_name: str) -> Callable[..., Any]:
        """装饰器方式注册通知监听器"""
        def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
            self.listen(event_name, fn)
            return fn
        return decorator

    def remove(self, event_name: str, fn: Callable[..., Any]) -> None:
        listeners = self._listeners.get(event_name, [])
        if fn in listeners:
            listeners.remove(fn)

    def dispatch(self, event_name: str, *args: Any) -> None:
        for fn in list(self._listeners.get(event_name, [])):
            fn(*args)

    def clear(self) -> None:
        self._handlers.clear()
        self._listeners.clear()
