"""
DMod 字段定义

FieldSpec 描述表中的一列：名称、类型、主键/自增、唯一约束组、默认值和关联
"""

from typing import Any, Dict, Optional, Union, TYPE_CHECKING

from ..common.exceptions import FieldDefinitionError

if TYPE_CHECKING:
    from .constraints import ForeignKeyConstraint


# 符号类型到 SQL 类型的别名表，未知类型原样输出
TYPE_ALIASES: Dict[str, str] = {
    'INTEGER': 'integer',
    'STRING': 'text',
    'DECIMAL': 'number',
}

# 默认值需要加引号的类型
STRING_LIKE_TYPES = frozenset({'STRING', 'TEXT', 'DATETIME', 'DATE'})

_MISSING = object()


def quote_identifier(name: str) -> str:
    """用反引号包裹标识符"""
    return f"`{name}`"


def is_string_like(col_type: str) -> bool:
    """判断声明类型是否按字符串处理默认值"""
    upper = col_type.upper()
    if upper in STRING_LIKE_TYPES:
        return True
    return any(marker in upper for marker in ('CHAR', 'TEXT', 'CLOB'))


def render_literal(value: Any, string_like: bool) -> str:
    """
    渲染 DEFAULT 子句中的字面量

    Args:
        value: 默认值
        string_like: 声明类型是否为字符串类

    Returns:
        SQL 字面量
    """
    if value is None:
        return 'NULL'
    if isinstance(value, bool):
        return '1' if value else '0'
    if string_like:
        escaped = str(value).replace("'", "''")
        return f"'{escaped}'"
    return str(value)


class FieldSpec:
    """
    单列元数据

    auto_increment 是带副作用的赋值：设为 True 时强制 type=INTEGER、primary_key=True，
    之后不能再单独修改这两个属性。
    """

    def __init__(
        self,
        key: str,
        type: Optional[str] = 'STRING',
        primary_key: bool = False,
        auto_increment: bool = False,
        unique: Union[bool, str, None] = None,
        default: Any = _MISSING,
        association: Optional['ForeignKeyConstraint'] = None
    ):
        """
        初始化字段

        Args:
            key: 字段名（在 Schema 内唯一）
            type: 符号类型（INTEGER/STRING/DECIMAL/DATETIME 或任意原始 SQL 类型），None 视为 STRING
            primary_key: 是否主键
            auto_increment: 是否自增（隐含 INTEGER 主键）
            unique: 唯一约束组；True 表示以字段名单独成组
            default: 默认值，不传则不输出 DEFAULT 子句
            association: 外键约束
        """
        self.key = key
        self._auto_increment = False
        self._type = type or 'STRING'
        self._primary_key = primary_key
        self.unique_group: Optional[str] = None
        self.association = association
        self._default = default

        if unique:
            self.unique_group = key if unique is True else str(unique)
        if auto_increment:
            self.auto_increment = True

    @property
    def type(self) -> str:
        return self._type

    @type.setter
    def type(self, value: Optional[str]) -> None:
        value = value or 'STRING'
        if self._auto_increment and value.upper() != 'INTEGER':
            raise FieldDefinitionError(
                f"Auto-increment field '{self.key}' must stay INTEGER",
                field_name=self.key
            )
        self._type = value

    @property
    def primary_key(self) -> bool:
        return self._primary_key

    @primary_key.setter
    def primary_key(self, value: bool) -> None:
        if self._auto_increment and not value:
            raise FieldDefinitionError(
                f"Auto-increment field '{self.key}' must stay the primary key",
                field_name=self.key
            )
        self._primary_key = value

    @property
    def auto_increment(self) -> bool:
        return self._auto_increment

    @auto_increment.setter
    def auto_increment(self, value: bool) -> None:
        if value:
            self._type = 'INTEGER'
            self._primary_key = True
        self._auto_increment = bool(value)

    @property
    def has_default(self) -> bool:
        return self._default is not _MISSING

    @property
    def default(self) -> Any:
        return None if self._default is _MISSING else self._default

    @default.setter
    def default(self, value: Any) -> None:
        self._default = value

    @property
    def resolved_type(self) -> str:
        """别名表解析后的 SQL 类型"""
        return TYPE_ALIASES.get(self._type.upper(), self._type)

    def render_ddl(self) -> str:
        """
        生成 CREATE TABLE 中该列的定义

        Returns:
            形如 `key` integer PRIMARY KEY AUTOINCREMENT 的片段
        """
        parts = [quote_identifier(self.key), self.resolved_type]
        if self.primary_key:
            parts.append('PRIMARY KEY')
        if self.auto_increment:
            parts.append('AUTOINCREMENT')
        if self.has_default:
            parts.append('DEFAULT ' + render_literal(self._default, is_string_like(self._type)))
        return ' '.join(parts)

    def __repr__(self) -> str:
        return f"FieldSpec(key='{self.key}', type='{self._type}')"
