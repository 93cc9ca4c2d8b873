"""
DMod 查询子系统

根据 Schema 与记录的变更集生成 INSERT / UPDATE / SELECT 语句
"""

from .statements import StatementBuilder, CompiledStatement

__all__ = [
    'StatementBuilder',
    'CompiledStatement',
]
