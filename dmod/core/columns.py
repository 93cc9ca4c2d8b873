"""
DMod 列集合

ColumnsStore 按插入顺序保存一个 Schema 的全部字段，
DDL 与 SELECT * 的列顺序都依赖该顺序。
"""

from typing import Callable, Dict, Iterator, List, Optional, TypeVar, Union

from .constraints import ConstraintSet, TableConstraint
from .field import FieldSpec
from ..common.exceptions import DuplicateFieldError

T = TypeVar('T')


class ColumnsStore:
    """表中所有列的有序集合"""

    def __init__(self, schema_name: Optional[str] = None):
        self.schema_name = schema_name
        self._keys: Dict[str, int] = {}
        self._items: List[FieldSpec] = []

    def exists(self, key: str) -> bool:
        return key in self._keys

    def get(self, key: Union[str, int]) -> Optional[FieldSpec]:
        """
        按名称获取字段；名称不存在且参数为数字时按位置获取

        Args:
            key: 字段名或位置索引

        Returns:
            字段定义，找不到时返回 None
        """
        if isinstance(key, str) and key in self._keys:
            return self._items[self._keys[key]]

        index: Optional[int] = None
        if isinstance(key, int) and not isinstance(key, bool):
            index = key
        elif isinstance(key, str) and key.isdigit():
            index = int(key)

        if index is not None and 0 <= index < len(self._items):
            return self._items[index]
        return None

    def add(self, field: FieldSpec) -> FieldSpec:
        """
        添加字段

        Raises:
            DuplicateFieldError: 同名字段已存在
        """
        if self.exists(field.key):
            raise DuplicateFieldError(self.schema_name, field.key)
        self._keys[field.key] = len(self._items)
        self._items.append(field)
        return field

    def fields(self) -> List[FieldSpec]:
        return list(self._items)

    def keys(self) -> List[str]:
        return [field.key for field in self._items]

    def map(self, fn: Callable[[FieldSpec], T]) -> List[T]:
        return [fn(field) for field in self._items]

    def constraints(self) -> List[TableConstraint]:
        return list(ConstraintSet(self._items))

    def render(self) -> str:
        """
        生成 CREATE TABLE 括号内的部分：先字段，后约束
        """
        fragments = [field.render_ddl() for field in self._items]
        fragments.extend(ConstraintSet(self._items).render())
        return ', '.join(fragments)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"ColumnsStore(schema='{self.schema_name}', fields={self.keys()})"
