"""
Pytest 配置和共享 fixtures

此文件提供 pytest 测试所需的共享配置和 fixtures。
"""
import sys
import tempfile
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Dict, Generator, List, Tuple

import pytest

# 确保可以导入 dmod
sys.path.insert(0, str(Path(__file__).parent.parent))

from dmod import Schema, SQLiteAdapter, StorageAdapter, StatementBuilder, CompiledStatement


class RecordingAdapter(StorageAdapter):
    """
    只记录语句、不执行的适配器

    deferred=True 时 create 返回未完成的 Future，由测试调用 finish() 手动完成，
    用于验证注册屏障。
    """

    ADAPTER_NAME = 'recording'

    def __init__(self, deferred: bool = False):
        super().__init__()
        self.deferred = deferred
        self.ddl: List[str] = []
        self.statements: List[CompiledStatement] = []
        self.pending: Dict[str, Tuple[Schema, 'Future[Schema]']] = {}
        self.rows: List[Dict[str, Any]] = []
        self.next_id = 1
        self.fail_with: Any = None

    def create(self, schema: Schema) -> 'Future[Schema]':
        self.ddl.append(schema.create_table_sql())
        future: 'Future[Schema]' = Future()
        if self.deferred:
            self.pending[schema.table_name] = (schema, future)
        else:
            future.set_result(schema)
        return future

    def finish(self, table: str, error: Any = None) -> None:
        """完成某个表的 DDL"""
        schema, future = self.pending.pop(table)
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(schema)

    def create_record(self, schema, record, changes, completion) -> None:
        if self.fail_with is not None:
            completion.fail(self.fail_with)
            return
        self.statements.append(StatementBuilder.insert(schema, record))
        pk = schema.primary_key
        if pk is not None and record.get(pk) is None:
            record.set(pk, self.next_id)
            self.next_id += 1
        completion.succeed()

    def update_record(self, schema, record, changes, completion) -> None:
        if self.fail_with is not None:
            completion.fail(self.fail_with)
            return
        statement = StatementBuilder.update(schema, record, changes)
        if statement is not None:
            self.statements.append(statement)
        completion.succeed()

    def find_records(self, schema, statement) -> 'Future[List[Dict[str, Any]]]':
        self.statements.append(statement)
        future: 'Future[List[Dict[str, Any]]]' = Future()
        future.set_result(list(self.rows))
        return future


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    提供临时目录 fixture

    Yields:
        临时目录的 Path 对象
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def recording_adapter() -> RecordingAdapter:
    return RecordingAdapter()


@pytest.fixture
def sqlite_adapter() -> Generator[SQLiteAdapter, None, None]:
    """内存 SQLite 适配器"""
    adapter = SQLiteAdapter()
    yield adapter
    adapter.close()


@pytest.fixture
def task_schema() -> Schema:
    """示例 Task：自增主键、唯一名称、两个时间字段"""
    return (Schema('Task')
            .auto_increment_field('id')
            .unique_field('name')
            .date_time_field('created')
            .date_time_field('due'))


@pytest.fixture
def user_schema() -> Schema:
    """只有唯一 username 的 User"""
    return Schema('User').unique_field('username').field('email')
