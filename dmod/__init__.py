"""
DMod - 声明式模型与脏跟踪记录

用链式 API 声明表结构，自动生成建表 DDL 与唯一/外键约束；
记录跟踪自上次持久化以来的变更，生成最小化且身份安全的 UPDATE 语句。
"""

import logging

from .core import (
    FieldSpec,
    TableConstraint,
    UniqueConstraint,
    ForeignKeyConstraint,
    ConstraintSet,
    ColumnsStore,
    Schema,
    SchemaState,
    Record,
    RecordFactory,
    SaveCompletion,
    Database,
    HandlerRegistry,
    table,
    table_name,
)
from .query import StatementBuilder, CompiledStatement
from .adapters import StorageAdapter, SQLiteAdapter, get_adapter, get_available_adapters
from .common.options import SqliteAdapterOptions
from .common.exceptions import (
    DModException,
    SchemaError,
    DuplicateFieldError,
    UnknownFieldError,
    InvalidConstraintError,
    ConstraintFieldNotFoundError,
    FieldDefinitionError,
    SchemaRegistrationError,
    HandlerRegistrationError,
    SearchSyntaxError,
    AdapterError,
    AdapterNotFoundError,
    RecordNotFoundError,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = '0.1.0'

__all__ = [
    # Schema
    'FieldSpec',
    'TableConstraint',
    'UniqueConstraint',
    'ForeignKeyConstraint',
    'ConstraintSet',
    'ColumnsStore',
    'Schema',
    'SchemaState',
    'table',
    'table_name',
    # Records
    'Record',
    'RecordFactory',
    'SaveCompletion',
    'HandlerRegistry',
    # Database & adapters
    'Database',
    'StorageAdapter',
    'SQLiteAdapter',
    'SqliteAdapterOptions',
    'get_adapter',
    'get_available_adapters',
    # Statements
    'StatementBuilder',
    'CompiledStatement',
    # Exceptions
    'DModException',
    'SchemaError',
    'DuplicateFieldError',
    'UnknownFieldError',
    'InvalidConstraintError',
    'ConstraintFieldNotFoundError',
    'FieldDefinitionError',
    'SchemaRegistrationError',
    'HandlerRegistrationError',
    'SearchSyntaxError',
    'AdapterError',
    'AdapterNotFoundError',
    'RecordNotFoundError',
]
