"""
DMod 模型声明

Schema 提供链式的字段声明接口，维护关联、表名和用于匹配更新行的身份字段。

使用方式：
    Task = (Schema('Task')
            .auto_increment_field('id')
            .unique_field('name')
            .date_time_field('due'))
"""

import logging
import re
from concurrent.futures import Future
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, TYPE_CHECKING

from .columns import ColumnsStore
from .constraints import ForeignKeyConstraint, table_name
from .event import HandlerRegistry
from .field import FieldSpec
from .record import Record, RecordFactory
from ..query.statements import StatementBuilder
from ..common.exceptions import (
    AdapterError,
    ConstraintFieldNotFoundError,
    InvalidConstraintError,
    SchemaError,
)

if TYPE_CHECKING:
    from ..adapters.base import StorageAdapter

logger = logging.getLogger(__name__)


class SchemaState(Enum):
    """Schema 生命周期"""
    DEFINING = 'defining'
    REGISTERED = 'registered'  # DDL 已执行
    READY = 'ready'  # 关联已解析


def _then(source: 'Future[Any]', fn: Callable[[Any], Any]) -> 'Future[Any]':
    """source 完成后用 fn 转换结果，异常原样传递"""
    target: 'Future[Any]' = Future()

    def _done(f: 'Future[Any]') -> None:
        error = f.exception()
        if error is not None:
            target.set_exception(error)
            return
        try:
            target.set_result(fn(f.result()))
        except Exception as exc:
            target.set_exception(exc)

    source.add_done_callback(_done)
    return target


class Schema:
    """数据表的声明式定义"""

    def __init__(self, name: str):
        """
        Args:
            name: 模型名，表名由其推导
        """
        self._name = name
        self._associations: List[ForeignKeyConstraint] = []
        self._unique_fields: Optional[List[str]] = None
        self.columns_store = ColumnsStore(name)
        self.handlers = HandlerRegistry(owner=name)
        self.state = SchemaState.DEFINING
        self._factory = RecordFactory(self)
        self._adapter: Optional['StorageAdapter'] = None

    # ========== 命名 ==========

    @property
    def name(self) -> str:
        """首字母大写的模型名（'task' -> 'Task'）"""
        lowered = self._name.lower()
        return lowered[:1].upper() + lowered[1:]

    @property
    def table_name(self) -> str:
        return table_name(self._name)

    # ========== 字段声明 ==========

    def field(self, name: str, **config: Any) -> 'Schema':
        """
        声明任意配置的字段

        Args:
            name: 字段名
            **config: type, primary_key, auto_increment, unique, default, association

        Raises:
            DuplicateFieldError: 字段已存在
        """
        self.columns_store.add(FieldSpec(name, **config))
        self._unique_fields = None
        self._factory = RecordFactory(self)
        return self

    def auto_increment_field(self, name: str) -> 'Schema':
        return self.field(name, type='INTEGER', primary_key=True, auto_increment=True)

    def unique_field(self, name: str, *args: str) -> 'Schema':
        """
        声明带唯一约束的字段

        参数解析：
            unique_field('username')                -> 约束组 '_username'
            unique_field('slug', 'site')            -> 第二个参数不是全大写，视为约束组
            unique_field('code', 'INTEGER')         -> 第二个参数是类型
            unique_field('code', 'INTEGER', 'grp')  -> 类型 + 约束组
        """
        col_type: Optional[str] = None
        group: Optional[str] = None

        if not args:
            group = '_' + name
        elif len(args) == 1:
            if args[0].upper() != args[0]:
                group = args[0]
            else:
                col_type = args[0]
        else:
            col_type, group = args[0], args[1]

        return self.field(name, type=col_type or 'STRING', unique=group or True)

    def numeric_field(self, name: str) -> 'Schema':
        return self.field(name, type='DECIMAL')

    def date_time_field(self, name: str) -> 'Schema':
        return self.field(name, type='DATETIME')

    def unique_constraint(self, *names: str) -> 'Schema':
        """
        把已声明的多个字段归入同一个唯一约束

        Raises:
            ConstraintFieldNotFoundError: 字段尚未声明
            InvalidConstraintError: 字段已属于某个唯一约束
        """
        group = re.sub(r'[^a-zA-Z0-9]', '', '_'.join(names))

        fields = []
        for field_name in names:
            field = self.columns_store.get(field_name)
            if field is None or field.key != field_name:
                raise ConstraintFieldNotFoundError(self._name, field_name)
            if field.unique_group:
                raise InvalidConstraintError(
                    f"Unable to add a unique constraint to field '{field_name}' "
                    f"- it is already constrained as '{field.unique_group}'",
                    schema_name=self._name,
                    field_name=field_name
                )
            fields.append(field)

        for field in fields:
            field.unique_group = group
        self._unique_fields = None
        return self

    # ========== 关联 ==========

    def has_one(self, schema_name: str, alias: Optional[str] = None) -> 'Schema':
        """
        声明指向另一个模型的外键字段

        目标模型可以在之后才声明，关联在 associate 时解析。

        Args:
            schema_name: 目标模型名
            alias: 字段名，默认使用目标模型名
        """
        constraint = ForeignKeyConstraint(schema_name, alias or schema_name, schema_name)
        self._associations.append(constraint)
        return self.field(
            constraint.field_name,
            type='INTEGER',
            default=None,
            association=constraint
        )

    @property
    def associations(self) -> List[ForeignKeyConstraint]:
        return list(self._associations)

    def associate(self, schemas: Mapping[str, 'Schema']) -> 'Schema':
        """
        解析所有外键的目标 Schema

        必须在全部 Schema 的 DDL 完成之后调用。

        Args:
            schemas: 表名 -> Schema
        """
        for field in self.columns_store:
            constraint = field.association
            if constraint is None:
                continue
            target = schemas.get(constraint.foreign_table)
            if target is None:
                raise SchemaError(
                    f"Association target '{constraint.foreign_schema}' is not registered",
                    schema_name=self._name,
                    field_name=field.key
                )
            constraint.resolve(target)
        return self

    # ========== 身份字段 ==========

    @property
    def primary_key(self) -> Optional[str]:
        for field in self.columns_store:
            if field.primary_key:
                return field.key
        return None

    def get_unique_fields(self) -> List[str]:
        """
        用于定位记录的字段：所有带唯一约束组的字段（声明顺序）；
        没有唯一字段时退回主键字段
        """
        if self._unique_fields is None:
            unique = [f.key for f in self.columns_store if f.unique_group]
            if not unique:
                unique = [f.key for f in self.columns_store if f.primary_key]
            self._unique_fields = unique
        return list(self._unique_fields)

    # ========== DDL ==========

    def render(self) -> str:
        return self.columns_store.render()

    def create_table_sql(self) -> str:
        return f"CREATE TABLE IF NOT EXISTS `{self.table_name}` ({self.render()})"

    def mark_registered(self) -> None:
        self.state = SchemaState.REGISTERED
        logger.debug("schema %s registered", self.name)

    def mark_ready(self) -> None:
        self.state = SchemaState.READY
        logger.debug("schema %s ready", self.name)
        self.handlers.dispatch('ready', self)

    @property
    def is_ready(self) -> bool:
        return self.state is SchemaState.READY

    # ========== 记录 ==========

    def bind(self, adapter: 'StorageAdapter') -> 'Schema':
        """绑定适配器：注册 create/update 处理器，并用于查询"""
        self._adapter = adapter
        self.handlers.set_handler(
            'create',
            lambda record, changes, completion: adapter.create_record(self, record, changes, completion),
            replace=True
        )
        self.handlers.set_handler(
            'update',
            lambda record, changes, completion: adapter.update_record(self, record, changes, completion),
            replace=True
        )
        return self

    @property
    def factory(self) -> RecordFactory:
        return self._factory

    def create(self, data: Optional[Mapping[str, Any]] = None) -> Record:
        """创建记录；data 中带主键值时视为已存在的记录"""
        return self._factory.create(data or {})

    def hydrate(self, row: Mapping[str, Any]) -> Record:
        """从查询结果构建已持久化的记录"""
        return self._factory.create(row, persisted=True)

    def by(self, search: Optional[Mapping[str, Any]] = None) -> 'Future[List[Record]]':
        """
        按条件查询

        查询对象非法时同步抛出异常；执行期错误通过 Future 传递。

        Raises:
            UnknownFieldError: 引用了未声明的字段
            SearchSyntaxError: 查询值结构不受支持
        """
        statement = StatementBuilder.select(self, search)
        if self._adapter is None:
            failed: 'Future[List[Record]]' = Future()
            failed.set_exception(AdapterError("Schema is not bound to an adapter", schema_name=self._name))
            return failed

        rows = self._adapter.find_records(self, statement)
        return _then(rows, lambda result: [self.hydrate(row) for row in result])

    def find(self, pk: Any) -> 'Future[List[Record]]':
        """按主键查询"""
        return self.by({self.primary_key or 'id': pk})

    def __repr__(self) -> str:
        return f"Schema(name='{self.name}', table='{self.table_name}', fields={self.columns_store.keys()})"
