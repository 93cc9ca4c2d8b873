"""
DMod SQLite 适配器

使用标准库 sqlite3，整个适配器只持有一条连接：
DDL 与 DML 串行执行，"插入后读取生成主键"的顺序由此保证，没有连接池。
"""

import logging
import sqlite3
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union, TYPE_CHECKING

from .base import StorageAdapter
from .registry import AdapterRegistry
from ..query.statements import CompiledStatement, StatementBuilder
from ..common.exceptions import AdapterError, RecordNotFoundError
from ..common.options import SqliteAdapterOptions

if TYPE_CHECKING:
    from ..core.record import Record, SaveCompletion
    from ..core.schema import Schema

logger = logging.getLogger(__name__)


@AdapterRegistry.register
class SQLiteAdapter(StorageAdapter):
    """SQLite 适配器（单连接）"""

    ADAPTER_NAME = 'sqlite'
    REQUIRED_DEPENDENCIES: List[str] = []  # 标准库

    def __init__(
        self,
        path: Union[str, Path] = ':memory:',
        options: Optional[SqliteAdapterOptions] = None
    ):
        """
        初始化 SQLite 适配器

        Args:
            path: 数据库文件路径，默认内存数据库
            options: SQLite 适配器配置选项
        """
        if options is None:
            options = SqliteAdapterOptions()
        assert isinstance(options, SqliteAdapterOptions), "options must be an instance of SqliteAdapterOptions"
        super().__init__(options)
        self.options: SqliteAdapterOptions = options
        self.path = str(path)

        connect_kwargs: Dict[str, Any] = {
            'check_same_thread': options.check_same_thread,
            'isolation_level': options.isolation_level,
        }
        if options.timeout is not None:
            connect_kwargs['timeout'] = options.timeout

        self.connection = sqlite3.connect(self.path, **connect_kwargs)
        self.connection.row_factory = sqlite3.Row
        if options.foreign_keys:
            self.connection.execute("PRAGMA foreign_keys = ON")

    def _execute(self, statement: CompiledStatement) -> sqlite3.Cursor:
        logger.debug("sqlite: %s %r", statement.sql, statement.params)
        cursor = self.connection.execute(statement.sql, statement.params)
        if self.connection.in_transaction:
            self.connection.commit()
        return cursor

    @staticmethod
    def _wrap(error: sqlite3.Error, schema: 'Schema', sql: Optional[str] = None) -> AdapterError:
        details: Dict[str, Any] = {'sqlite_error': error.__class__.__name__}
        if sql is not None:
            details['sql'] = sql
        wrapped = AdapterError(str(error), schema_name=schema.name, details=details)
        wrapped.__cause__ = error
        return wrapped

    def create(self, schema: 'Schema') -> 'Future[Schema]':
        future: 'Future[Schema]' = Future()
        statement = CompiledStatement(schema.create_table_sql())
        try:
            self._execute(statement)
        except sqlite3.Error as exc:
            future.set_exception(self._wrap(exc, schema, statement.sql))
            return future
        future.set_result(schema)
        return future

    def create_record(
        self,
        schema: 'Schema',
        record: 'Record',
        changes: Mapping[str, Any],
        completion: 'SaveCompletion'
    ) -> None:
        statement = StatementBuilder.insert(schema, record)
        try:
            cursor = self._execute(statement)
        except sqlite3.Error as exc:
            completion.fail(self._wrap(exc, schema, statement.sql))
            return

        # 只有 INTEGER PRIMARY KEY 是 rowid 的别名
        pk = schema.primary_key
        if (pk is not None and record.get(pk) is None
                and schema.columns_store.get(pk).resolved_type.lower() == 'integer'):
            record.set(pk, cursor.lastrowid)
        completion.succeed()

    def update_record(
        self,
        schema: 'Schema',
        record: 'Record',
        changes: Mapping[str, Any],
        completion: 'SaveCompletion'
    ) -> None:
        statement = StatementBuilder.update(schema, record, changes)
        if statement is None:
            completion.succeed()
            return

        try:
            cursor = self._execute(statement)
        except sqlite3.Error as exc:
            completion.fail(self._wrap(exc, schema, statement.sql))
            return

        if cursor.rowcount == 0:
            if self.options.strict_updates:
                completion.fail(RecordNotFoundError(schema.name, statement.identity))
                return
            logger.warning("update on %s matched no rows for %r", schema.table_name, statement.identity)
        completion.succeed()

    def find_records(self, schema: 'Schema', statement: CompiledStatement) -> 'Future[List[Dict[str, Any]]]':
        future: 'Future[List[Dict[str, Any]]]' = Future()
        try:
            rows = self._execute(statement).fetchall()
        except sqlite3.Error as exc:
            future.set_exception(self._wrap(exc, schema, statement.sql))
            return future
        future.set_result([dict(row) for row in rows])
        return future

    def close(self) -> None:
        self.connection.close()
