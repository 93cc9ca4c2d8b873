"""
DMod 核心模块

包含字段、约束、模型声明、记录与数据库门面
"""

from .field import FieldSpec
from .constraints import TableConstraint, UniqueConstraint, ForeignKeyConstraint, ConstraintSet, table_name
from .columns import ColumnsStore
from .record import Record, RecordFactory, FieldAccessor, SaveCompletion
from .schema import Schema, SchemaState
from .database import Database, table
from .event import HandlerRegistry

__all__ = [
    'FieldSpec',
    'TableConstraint',
    'UniqueConstraint',
    'ForeignKeyConstraint',
    'ConstraintSet',
    'table_name',
    'ColumnsStore',
    'Record',
    'RecordFactory',
    'FieldAccessor',
    'SaveCompletion',
    'Schema',
    'SchemaState',
    'Database',
    'table',
    'HandlerRegistry',
]
