"""
DMod 语句构建器

所有语句使用 ? 占位符，参数按出现顺序排列。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, TYPE_CHECKING

from ..core.field import quote_identifier
from ..common.exceptions import SchemaError, SearchSyntaxError, UnknownFieldError

if TYPE_CHECKING:
    from ..core.record import Record
    from ..core.schema import Schema


@dataclass(frozen=True)
class CompiledStatement:
    """编译后的 SQL 语句及参数"""
    sql: str
    params: Tuple[Any, ...] = ()
    # UPDATE 的身份条件 {字段: 提交前的值}
    identity: Dict[str, Any] = field(default_factory=dict)

    def __iter__(self):
        # 支持 sql, params = statement
        return iter((self.sql, self.params))


def bind_value(value: Any) -> Any:
    """关联字段保存的是记录对象时，取其主键值"""
    # 延迟导入，避免循环依赖
    from ..core.record import Record

    if isinstance(value, Record):
        pk = value.schema.primary_key or 'id'
        return value.get(pk) if pk in value else None
    return value


class StatementBuilder:
    """INSERT / UPDATE / SELECT 语句构建"""

    @staticmethod
    def insert(schema: 'Schema', record: 'Record') -> CompiledStatement:
        """
        构建 INSERT

        列为记录中已赋值的字段，按 Schema 声明顺序排列。
        """
        values = record.to_dict()
        columns = [key for key in schema.columns_store.keys() if key in values]
        table = quote_identifier(schema.table_name)

        if not columns:
            return CompiledStatement(f"INSERT INTO {table} DEFAULT VALUES")

        column_sql = ', '.join(quote_identifier(c) for c in columns)
        placeholders = ', '.join('?' for _ in columns)
        params = tuple(bind_value(values[c]) for c in columns)
        return CompiledStatement(
            f"INSERT INTO {table} ({column_sql}) VALUES ({placeholders})",
            params
        )

    @staticmethod
    def update(schema: 'Schema', record: 'Record', changes: Optional[Mapping[str, Any]] = None) -> Optional[CompiledStatement]:
        """
        构建 UPDATE

        SET 只包含变更字段；WHERE 用身份字段提交前的值匹配，
        即使身份字段本身也在本次变更中。

        Returns:
            没有变更时返回 None
        """
        if changes is None:
            changes = record.changes
        if not changes:
            return None

        set_columns = [key for key in schema.columns_store.keys() if key in changes]
        identity = {key: bind_value(record.original_value(key)) for key in schema.get_unique_fields()}
        if not identity:
            raise SchemaError(
                "Cannot build UPDATE without identity fields",
                schema_name=schema.name
            )

        set_sql = ', '.join(f"{quote_identifier(c)} = ?" for c in set_columns)
        where_sql = ' AND '.join(f"{quote_identifier(c)} = ?" for c in identity)
        params = tuple(bind_value(changes[c]) for c in set_columns) + tuple(identity.values())
        return CompiledStatement(
            f"UPDATE {quote_identifier(schema.table_name)} SET {set_sql} WHERE {where_sql}",
            params,
            identity
        )

    @staticmethod
    def select(schema: 'Schema', search: Optional[Mapping[str, Any]] = None) -> CompiledStatement:
        """
        构建 SELECT

        查询对象语法：
            {field: 标量}            等值匹配
            {field: {'like': 模式}}  模式匹配

        Raises:
            UnknownFieldError: 字段未声明
            SearchSyntaxError: 查询值的结构不受支持
        """
        criteria: List[str] = []
        params: List[Any] = []

        for key, value in (search or {}).items():
            if key not in schema.columns_store:
                raise UnknownFieldError(schema.name, key)

            column = quote_identifier(key)
            if isinstance(value, Mapping):
                if set(value.keys()) != {'like'}:
                    raise SearchSyntaxError(
                        f"Unsupported search expression for '{key}': {dict(value)!r}",
                        schema_name=schema.name,
                        field_name=key
                    )
                pattern = value['like']
                if isinstance(pattern, (Mapping, list, tuple, set)):
                    raise SearchSyntaxError(
                        f"Unsupported LIKE pattern for '{key}': {pattern!r}",
                        schema_name=schema.name,
                        field_name=key
                    )
                criteria.append(f"{column} LIKE ?")
                params.append(pattern)
            elif isinstance(value, (list, tuple, set)):
                raise SearchSyntaxError(
                    f"Unsupported search expression for '{key}': {value!r}",
                    schema_name=schema.name,
                    field_name=key
                )
            elif value is None:
                criteria.append(f"{column} IS NULL")
            else:
                criteria.append(f"{column} = ?")
                params.append(bind_value(value))

        sql = f"SELECT * FROM {quote_identifier(schema.table_name)}"
        if criteria:
            sql += ' WHERE ' + ' AND '.join(criteria)
        return CompiledStatement(sql, tuple(params))
