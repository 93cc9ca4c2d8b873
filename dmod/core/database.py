"""
DMod 数据库门面

Database 负责两阶段注册：
1. 为每个 Schema 绑定适配器并发出 DDL
2. 所有 DDL 完成后（无论注册顺序）统一解析关联、绑定 create_<name> 辅助方法，并解析 ready
"""

import functools
import importlib
import logging
import threading
from concurrent.futures import Future
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union

from .constraints import table_name
from .record import Record
from .schema import Schema
from ..adapters.base import StorageAdapter
from ..common.exceptions import SchemaError, SchemaRegistrationError

logger = logging.getLogger(__name__)


class Database:
    """Schema 集合与适配器的组合"""

    def __init__(self, adapter: StorageAdapter):
        """
        Args:
            adapter: 存储适配器
        """
        self._adapter = adapter
        self._schemas: Dict[str, Schema] = {}
        self.ready: 'Future[Database]' = Future()
        self._pending = 0
        self._failed = False
        self._lock = threading.Lock()

    @property
    def adapter(self) -> StorageAdapter:
        return self._adapter

    @property
    def schemas(self) -> Mapping[str, Schema]:
        """表名 -> Schema 的只读视图"""
        return MappingProxyType(self._schemas)

    def register(self, *schemas: Schema) -> 'Database':
        """
        注册任意数量的 Schema

        每个 Schema 的 DDL 完成信号被汇总，全部完成后才解析关联，
        因此外键目标可以按任意顺序声明。

        Raises:
            SchemaRegistrationError: 参数不是 Schema
        """
        for schema in schemas:
            if not isinstance(schema, Schema):
                raise SchemaRegistrationError(
                    f"Table {schema!r} must be an instance of Schema"
                )

        if self.ready.done():
            self.ready = Future()
            self._failed = False

        with self._lock:
            self._pending += len(schemas)

        ddl_futures: List['Future[Schema]'] = []
        for schema in schemas:
            self._schemas[schema.table_name] = schema
            schema.bind(self._adapter)
            logger.debug("issuing DDL for %s", schema.table_name)
            ddl_futures.append(self._adapter.create(schema))

        for future in ddl_futures:
            future.add_done_callback(self._on_created)

        if not schemas and not self.ready.done():
            self._associate_all()

        return self

    def _on_created(self, future: 'Future[Schema]') -> None:
        error = future.exception()
        with self._lock:
            self._pending -= 1
            remaining = self._pending
            if error is not None:
                self._failed = True

        if error is not None:
            logger.debug("DDL failed: %s", error)
            if not self.ready.done():
                self.ready.set_exception(error)
            return

        future.result().mark_registered()
        if remaining == 0 and not self._failed:
            self._associate_all()

    def _associate_all(self) -> None:
        """屏障之后：解析全部关联，绑定辅助方法，标记就绪"""
        try:
            for schema in self._schemas.values():
                schema.associate(self._schemas)
        except SchemaError as exc:
            self.ready.set_exception(exc)
            return

        for schema in self._schemas.values():
            helper = 'create_' + schema.name.lower()
            setattr(self, helper, functools.partial(self.create, schema))
            if not schema.is_ready:
                schema.mark_ready()

        logger.debug("database ready with tables %s", sorted(self._schemas))
        self.ready.set_result(self)

    def schema(self, name: str) -> Schema:
        """
        按表名或模型名获取 Schema

        Raises:
            SchemaError: 未注册
        """
        for key in (name, table_name(name)):
            if key in self._schemas:
                return self._schemas[key]
        raise SchemaError(f"Schema '{name}' is not registered", schema_name=name)

    def create(self, schema: Union[Schema, str], data: Optional[Mapping[str, Any]] = None) -> Record:
        """
        创建记录

        data 包含主键值时，记录被视为已存在，保存时走 update；
        否则保存时插入新行并生成主键。
        """
        if not isinstance(schema, Schema):
            schema = self.schema(schema)
        return schema.create(data)

    def close(self) -> None:
        self._adapter.close()

    def __getitem__(self, name: str) -> Schema:
        return self.schema(name)

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def __repr__(self) -> str:
        return f"Database(adapter={self._adapter!r}, tables={sorted(self._schemas)})"


def table(name: str, descriptor: Optional[str] = None) -> Schema:
    """
    创建或加载一个 Schema

    Args:
        name: 模型名
        descriptor: 可选的 'module:attr' 导入路径，目标必须是 Schema

    Raises:
        SchemaRegistrationError: 加载到的对象不是 Schema
    """
    if descriptor is None:
        return Schema(name)

    module_name, _, attr = descriptor.partition(':')
    module = importlib.import_module(module_name)
    found = getattr(module, attr or 'schema', None)

    if not isinstance(found, Schema):
        raise SchemaRegistrationError(
            f"Table `{name}` must be an instance of Schema",
            schema_name=name,
            details={'descriptor': descriptor}
        )
    return found
