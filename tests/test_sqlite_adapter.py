"""
SQLite 适配器端到端测试

使用内存数据库验证建表、插入生成主键、身份安全的更新、查询与外键。
"""

import sqlite3
from pathlib import Path

import pytest

from dmod import (
    Database, Schema, SQLiteAdapter, SqliteAdapterOptions,
    AdapterError, RecordNotFoundError, SearchSyntaxError, UnknownFieldError,
    get_adapter, get_available_adapters,
)
from dmod.common.exceptions import AdapterNotFoundError


@pytest.fixture
def db(sqlite_adapter: SQLiteAdapter, task_schema: Schema, user_schema: Schema) -> Database:
    database = Database(sqlite_adapter).register(task_schema, user_schema)
    database.ready.result()
    return database


def _columns(adapter: SQLiteAdapter, table: str):
    return [row[1] for row in adapter.connection.execute(f"PRAGMA table_info(`{table}`)")]


class TestSchemaCreation:
    """建表测试"""

    def test_tables_created_in_field_order(self, db: Database, sqlite_adapter: SQLiteAdapter):
        assert _columns(sqlite_adapter, 'tasks') == ['id', 'name', 'created', 'due']
        assert _columns(sqlite_adapter, 'users') == ['username', 'email']

    def test_ddl_is_idempotent(self, sqlite_adapter: SQLiteAdapter, task_schema: Schema):
        assert sqlite_adapter.create(task_schema).result() is task_schema
        assert sqlite_adapter.create(task_schema).result() is task_schema

    def test_invalid_ddl_goes_to_future(self, sqlite_adapter: SQLiteAdapter):
        broken = Schema('Broken').field('a', type='NOT A TYPE (')
        future = sqlite_adapter.create(broken)
        error = future.exception()
        assert isinstance(error, AdapterError)
        assert isinstance(error.__cause__, sqlite3.Error)
        assert 'sql' in error.details


class TestCreateAndUpdate:
    """插入与更新测试"""

    def test_insert_assigns_generated_key(self, db: Database):
        first = db.create_task({'name': 'one'}).save().result()
        second = db.create_task({'name': 'two'}).save().result()
        assert (first.id, second.id) == (1, 2)
        assert not first.has_changes()

    def test_text_primary_key_is_not_generated(self, sqlite_adapter: SQLiteAdapter):
        """非 INTEGER 主键不是 rowid 别名，不写回 lastrowid"""
        code = Schema('Code').field('code', primary_key=True).field('label')
        Database(sqlite_adapter).register(code).ready.result()

        record = code.create({'label': 'x'}).save().result()

        rows = sqlite_adapter.connection.execute('SELECT code, label FROM codes').fetchall()
        assert [tuple(r) for r in rows] == [(None, 'x')]
        assert record.code is None

    def test_integer_primary_key_is_generated(self, sqlite_adapter: SQLiteAdapter):
        item = Schema('Item').field('n', type='INTEGER', primary_key=True).field('label')
        Database(sqlite_adapter).register(item).ready.result()

        record = item.create({'label': 'x'}).save().result()
        assert record.n == 1

    def test_rename_unique_field(self, db: Database, sqlite_adapter: SQLiteAdapter):
        user = db.create_user({'username': 'alice', 'email': 'a@example.com'})
        user.save().result()

        user.username = 'alicia'
        user.save().result()

        rows = sqlite_adapter.connection.execute('SELECT username FROM users').fetchall()
        assert [r[0] for r in rows] == ['alicia']

    def test_unique_violation_reported_through_future(self, db: Database):
        db.create_task({'name': 'dup'}).save().result()
        future = db.create_task({'name': 'dup'}).save()
        assert isinstance(future.exception(), AdapterError)

    def test_update_without_changes_is_noop(self, db: Database):
        task = db.create_task({'name': 'x'}).save().result()
        assert task.save().result() is task

    def test_zero_row_update_is_lenient_by_default(self, db: Database, caplog):
        ghost = db['users'].hydrate({'username': 'ghost'})
        ghost.email = 'g@example.com'
        with caplog.at_level('WARNING', logger='dmod.adapters.sqlite'):
            assert ghost.save().result() is ghost
        assert 'matched no rows' in caplog.text

    def test_zero_row_update_strict(self, user_schema: Schema):
        adapter = SQLiteAdapter(options=SqliteAdapterOptions(strict_updates=True))
        db = Database(adapter).register(user_schema)
        ghost = user_schema.hydrate({'username': 'ghost'})
        ghost.email = 'g@example.com'

        error = ghost.save().exception()
        assert isinstance(error, RecordNotFoundError)
        assert error.details['identity'] == {'username': 'ghost'}
        assert ghost.has_changes()
        db.close()


class TestQueries:
    """查询测试"""

    def test_by_returns_persisted_records(self, db: Database):
        db.create_task({'name': 'write docs'}).save().result()
        db.create_task({'name': 'write tests'}).save().result()
        db.create_task({'name': 'ship'}).save().result()

        found = db['tasks'].by({'name': {'like': 'write%'}}).result()
        assert [t.name for t in found] == ['write docs', 'write tests']
        assert all(not t.is_new and not t.has_changes() for t in found)

    def test_find_by_primary_key(self, db: Database):
        task = db.create_task({'name': 'x'}).save().result()
        (found,) = db['tasks'].find(task.id).result()
        assert found.name == 'x'

    def test_found_record_updates(self, db: Database, sqlite_adapter: SQLiteAdapter):
        db.create_task({'name': 'old'}).save().result()
        (found,) = db['tasks'].by({'name': 'old'}).result()
        found.name = 'new'
        found.save().result()
        assert sqlite_adapter.connection.execute('SELECT name FROM tasks').fetchone()[0] == 'new'

    def test_find_record(self, db: Database, sqlite_adapter: SQLiteAdapter):
        task = db.create_task({'name': 'x'}).save().result()
        assert sqlite_adapter.find_record(db['tasks'], task.id).result()['name'] == 'x'
        assert sqlite_adapter.find_record(db['tasks'], 99).result() is None

    def test_invalid_search_fails_fast(self, db: Database):
        with pytest.raises(SearchSyntaxError):
            db['tasks'].by({'name': {'regex': '.*'}})
        with pytest.raises(UnknownFieldError):
            db['tasks'].by({'owner': 1})

    def test_unbound_schema(self):
        future = Schema('Loose').field('a').by({'a': 1})
        assert isinstance(future.exception(), AdapterError)


class TestAssociations:
    """外键测试"""

    def test_foreign_key_reference(self, sqlite_adapter: SQLiteAdapter):
        task = Schema('Task').auto_increment_field('id').field('title').has_one('Project')
        project = Schema('Project').auto_increment_field('id').unique_field('name')
        db = Database(sqlite_adapter).register(task, project)
        db.ready.result()

        owner = db.create_project({'name': 'dmod'}).save().result()
        item = db.create_task({'title': 'write', 'project': owner}).save().result()

        row = sqlite_adapter.connection.execute('SELECT project FROM tasks WHERE id = ?', (item.id,)).fetchone()
        assert row[0] == owner.id

    def test_cascade_delete(self, sqlite_adapter: SQLiteAdapter):
        task = Schema('Task').auto_increment_field('id').has_one('Project')
        project = Schema('Project').auto_increment_field('id').field('name')
        db = Database(sqlite_adapter).register(task, project)

        owner = db.create_project({'name': 'p'}).save().result()
        db.create_task({'project': owner.id}).save().result()

        sqlite_adapter.connection.execute('DELETE FROM projects')
        assert sqlite_adapter.connection.execute('SELECT COUNT(*) FROM tasks').fetchone()[0] == 0


class TestAdapterRegistry:
    """适配器注册表测试"""

    def test_get_adapter(self, temp_dir: Path):
        adapter = get_adapter('sqlite', temp_dir / 'todo.db')
        assert isinstance(adapter, SQLiteAdapter)
        assert adapter.path.endswith('todo.db')
        adapter.close()

    def test_get_adapter_default_path(self):
        adapter = get_adapter('sqlite')
        assert adapter.path == ':memory:'
        adapter.close()

    def test_unknown_adapter(self):
        with pytest.raises(AdapterNotFoundError) as exc_info:
            get_adapter('oracle')
        assert 'sqlite' in exc_info.value.details['available']

    def test_available(self):
        assert get_available_adapters()['sqlite'] is True

    def test_file_database_persists(self, temp_dir: Path):
        path = temp_dir / 'todo.db'
        schema = Schema('Task').auto_increment_field('id').unique_field('name')

        adapter = SQLiteAdapter(path)
        Database(adapter).register(schema)
        schema.create({'name': 'persisted'}).save().result()
        adapter.close()

        reopened = SQLiteAdapter(path)
        rows = reopened.connection.execute('SELECT name FROM tasks').fetchall()
        assert [r[0] for r in rows] == ['persisted']
        reopened.close()
