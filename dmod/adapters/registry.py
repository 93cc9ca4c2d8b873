"""
DMod 适配器注册表

提供适配器注册、发现和实例化功能
"""

from typing import Any, Dict, Optional, Type

from .base import StorageAdapter
from ..common.exceptions import AdapterNotFoundError
from ..common.options import AdapterOptions, get_default_adapter_options


class AdapterRegistry:
    """适配器注册表"""

    _adapters: Dict[str, Type[StorageAdapter]] = {}

    @classmethod
    def register(cls, adapter_class: Type[StorageAdapter]) -> Type[StorageAdapter]:
        """注册适配器类，可用作装饰器"""
        if not adapter_class.ADAPTER_NAME:
            raise ValueError(f"{adapter_class.__name__} must define ADAPTER_NAME")
        cls._adapters[adapter_class.ADAPTER_NAME] = adapter_class
        return adapter_class

    @classmethod
    def get(cls, name: str) -> Type[StorageAdapter]:
        """
        按名称获取适配器类

        Raises:
            AdapterNotFoundError: 未注册
        """
        if name not in cls._adapters:
            raise AdapterNotFoundError(name, sorted(cls._adapters))
        return cls._adapters[name]

    @classmethod
    def available(cls) -> Dict[str, bool]:
        """所有已注册适配器及其依赖是否可用"""
        return {name: adapter.is_available() for name, adapter in cls._adapters.items()}


def get_adapter(name: str, path: Optional[Any] = None, options: Optional[AdapterOptions] = None) -> StorageAdapter:
    """
    实例化适配器

    Args:
        name: 适配器名称（'sqlite'）
        path: 数据库路径，None 表示使用适配器默认值
        options: 适配器配置选项，None 时使用默认选项
    """
    adapter_class = AdapterRegistry.get(name)
    if options is None:
        options = get_default_adapter_options(name)
    if path is None:
        return adapter_class(options=options)  # type: ignore[call-arg]
    return adapter_class(path, options=options)  # type: ignore[call-arg]


def get_available_adapters() -> Dict[str, bool]:
    return AdapterRegistry.available()
