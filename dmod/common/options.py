"""
DMod 配置选项 dataclass 定义

适配器的配置通过强类型选项对象传入，替代 **kwargs 参数。
"""
from dataclasses import dataclass
from typing import Optional, Union, Dict


@dataclass(slots=True)
class SqliteAdapterOptions:
    """SQLite 适配器配置选项"""
    check_same_thread: bool = True  # 检查同一线程
    timeout: Optional[float] = None  # 连接超时时间
    isolation_level: Optional[str] = None  # 事务隔离级别
    foreign_keys: bool = True  # 启用 PRAGMA foreign_keys

    # UPDATE 未匹配任何行时的处理策略
    # False: 视为成功，仅记录 WARNING 日志（默认）
    # True: 通过 Future 抛出 RecordNotFoundError
    strict_updates: bool = False


# Adapter 选项联合类型
AdapterOptions = Union[SqliteAdapterOptions]


def get_default_adapter_options(name: str) -> AdapterOptions:
    """根据适配器名称返回默认选项"""
    defaults: Dict[str, AdapterOptions] = {
        'sqlite': SqliteAdapterOptions(),
    }
    return defaults.get(name, SqliteAdapterOptions())
