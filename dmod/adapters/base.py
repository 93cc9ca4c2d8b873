"""
DMod 适配器抽象基类

适配器负责把 Schema / Record 操作翻译为具体的 SQL 执行：
- create：执行幂等的建表 DDL
- create_record / update_record：持久化后通过 SaveCompletion 回报
- find_records：执行 SELECT 并返回行字典

所有操作都不抛出持久化异常，而是通过 Future / SaveCompletion 传递。
"""

import importlib.util
from abc import ABC, abstractmethod
from concurrent.futures import Future
from typing import Any, Dict, List, Mapping, Optional, TYPE_CHECKING

from ..query.statements import CompiledStatement, StatementBuilder
from ..common.options import AdapterOptions

if TYPE_CHECKING:
    from ..core.record import Record, SaveCompletion
    from ..core.schema import Schema


class StorageAdapter(ABC):
    """存储适配器抽象基类"""

    ADAPTER_NAME: str = ''
    REQUIRED_DEPENDENCIES: List[str] = []

    def __init__(self, options: Optional[AdapterOptions] = None):
        self.options = options

    @abstractmethod
    def create(self, schema: 'Schema') -> 'Future[Schema]':
        """
        为 Schema 执行 CREATE TABLE IF NOT EXISTS

        Returns:
            DDL 完成后解析为 Schema 的 Future
        """
        pass

    @abstractmethod
    def create_record(
        self,
        schema: 'Schema',
        record: 'Record',
        changes: Mapping[str, Any],
        completion: 'SaveCompletion'
    ) -> None:
        """插入新记录，把生成的主键写回记录后调用 completion.succeed()"""
        pass

    @abstractmethod
    def update_record(
        self,
        schema: 'Schema',
        record: 'Record',
        changes: Mapping[str, Any],
        completion: 'SaveCompletion'
    ) -> None:
        """更新已有记录后调用 completion.succeed()"""
        pass

    @abstractmethod
    def find_records(self, schema: 'Schema', statement: CompiledStatement) -> 'Future[List[Dict[str, Any]]]':
        """执行 SELECT，返回行字典列表"""
        pass

    def find_record(self, schema: 'Schema', pk: Any) -> 'Future[Optional[Dict[str, Any]]]':
        """按主键查询单行，不存在时解析为 None"""
        statement = StatementBuilder.select(schema, {schema.primary_key or 'id': pk})
        rows = self.find_records(schema, statement)
        result: 'Future[Optional[Dict[str, Any]]]' = Future()

        def _done(f: 'Future[List[Dict[str, Any]]]') -> None:
            error = f.exception()
            if error is not None:
                result.set_exception(error)
            else:
                found = f.result()
                result.set_result(found[0] if found else None)

        rows.add_done_callback(_done)
        return result

    def close(self) -> None:
        """释放连接"""
        pass

    @classmethod
    def is_available(cls) -> bool:
        """检查依赖是否已安装"""
        return all(importlib.util.find_spec(dep) is not None for dep in cls.REQUIRED_DEPENDENCIES)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.ADAPTER_NAME}')"
