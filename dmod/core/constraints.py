"""
DMod 表约束

唯一约束由字段的 unique_group 推导；外键约束在 hasOne 时创建并随字段携带。
"""

from typing import Iterable, Iterator, List, Optional, TYPE_CHECKING

from .field import FieldSpec, quote_identifier

if TYPE_CHECKING:
    from .schema import Schema


def table_name(schema_name: str) -> str:
    """
    由模型名得到表名

    规则固定：转小写，去掉一个结尾的 s，再补上 s。
    并非通用的复数化（'Category' -> 'categorys'）。
    """
    lowered = schema_name.lower()
    if lowered.endswith('s'):
        lowered = lowered[:-1]
    return lowered + 's'


class TableConstraint:
    """表约束基类：名称 + 有序去重的字段列表"""

    KIND = ''

    def __init__(self, name: str):
        self.name = name
        self._fields: List[str] = []

    @property
    def fields(self) -> List[str]:
        return list(self._fields)

    def add(self, field_name: str) -> 'TableConstraint':
        if field_name not in self._fields:
            self._fields.append(field_name)
        return self

    def is_kind(self, kind: str) -> bool:
        return self.KIND == kind

    def _post_string(self) -> str:
        return ''

    def __str__(self) -> str:
        columns = ', '.join(quote_identifier(f) for f in self._fields)
        sql = f"CONSTRAINT {quote_identifier(self.name)} {self.KIND} ({columns})"
        post = self._post_string()
        return f"{sql} {post}" if post else sql

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', fields={self._fields})"


class UniqueConstraint(TableConstraint):
    """唯一约束，以 unique_<group> 命名"""

    KIND = 'UNIQUE'

    def __init__(self, group: str):
        super().__init__('unique_' + group)
        self.group = group


class ForeignKeyConstraint(TableConstraint):
    """
    外键约束

    目标 Schema 在声明时可能尚未定义，只记录名称；
    所有表的 DDL 完成后由 Schema.associate 绑定真实对象。
    """

    KIND = 'FOREIGN KEY'

    def __init__(self, name: str, field_name: str, foreign_schema: str):
        super().__init__('ForeignKey' + name)
        self.add(field_name.lower())
        self.foreign_schema = foreign_schema
        self._schema: Optional['Schema'] = None

    @property
    def field_name(self) -> str:
        return self._fields[0]

    @property
    def foreign_table(self) -> str:
        return table_name(self.foreign_schema)

    @property
    def schema(self) -> Optional['Schema']:
        """已解析的目标 Schema，未解析时为 None"""
        return self._schema

    @property
    def is_resolved(self) -> bool:
        return self._schema is not None

    def resolve(self, schema: 'Schema') -> 'ForeignKeyConstraint':
        self._schema = schema
        return self

    def _post_string(self) -> str:
        return f"REFERENCES {quote_identifier(self.foreign_table)} (`id`) ON DELETE CASCADE DEFERRABLE"


class ConstraintSet:
    """
    从字段列表推导约束

    按字段顺序遍历：首次出现的 unique_group 创建唯一约束，之后同组字段追加到该约束；
    带 association 的字段直接贡献其外键约束。结果按插入顺序去重。
    """

    def __init__(self, fields: Iterable[FieldSpec]):
        self._constraints: List[TableConstraint] = []
        unique_by_group = {}

        for field in fields:
            if field.unique_group:
                constraint = unique_by_group.get(field.unique_group)
                if constraint is None:
                    constraint = UniqueConstraint(field.unique_group)
                    unique_by_group[field.unique_group] = constraint
                    self._append(constraint)
                constraint.add(field.key)

            if field.association is not None:
                self._append(field.association)

    def _append(self, constraint: TableConstraint) -> None:
        if not any(existing is constraint for existing in self._constraints):
            self._constraints.append(constraint)

    def unique(self) -> List[UniqueConstraint]:
        return [c for c in self._constraints if isinstance(c, UniqueConstraint)]

    def foreign_keys(self) -> List[ForeignKeyConstraint]:
        return [c for c in self._constraints if isinstance(c, ForeignKeyConstraint)]

    def render(self) -> List[str]:
        return [str(c) for c in self._constraints]

    def __iter__(self) -> Iterator[TableConstraint]:
        return iter(list(self._constraints))

    def __len__(self) -> int:
        return len(self._constraints)
