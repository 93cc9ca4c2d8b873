"""
DMod 适配器模块

提供适配器注册、发现和实例化功能
"""

from .base import StorageAdapter
from .registry import (
    AdapterRegistry,
    get_adapter,
    get_available_adapters,
)
from .sqlite import SQLiteAdapter

__all__ = [
    'StorageAdapter',
    'AdapterRegistry',
    'SQLiteAdapter',
    'get_adapter',
    'get_available_adapters',
]
