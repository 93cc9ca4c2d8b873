"""
DMod 记录与记录工厂

RecordFactory 为每个 Schema 编译一张共享的字段访问器表；
Record 持有该表的引用以及自己的 values / changed / original 三个字典。

脏跟踪规则：
- 字段值第一次改变时，把改变前的值记入 original，直到下一次 commit_changes 才会被覆盖
- changed 记录自上次提交以来被修改字段的新值
- 通过工厂注入初始数据（hydrate）不会产生 changed / original
"""

import logging
from concurrent.futures import Future
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, TYPE_CHECKING

from .field import FieldSpec
from ..common.exceptions import AdapterError, UnknownFieldError

if TYPE_CHECKING:
    from .schema import Schema

logger = logging.getLogger(__name__)

SaveCallback = Callable[['Record'], Any]


def _same_value(current: Any, value: Any) -> bool:
    """同一对象，或同类型且相等"""
    return current is value or (type(current) is type(value) and current == value)


class FieldAccessor:
    """单个字段的读写描述符，由同一 Schema 的所有记录共享"""

    __slots__ = ('field', 'key')

    def __init__(self, field: FieldSpec):
        self.field = field
        self.key = field.key

    def get(self, record: 'Record') -> Any:
        return record._values.get(self.key)

    def set(self, record: 'Record', value: Any) -> None:
        values = record._values
        if self.key in values and _same_value(values[self.key], value):
            return

        if self.key not in record._original:
            record._original[self.key] = values.get(self.key)
        record._changed[self.key] = value
        values[self.key] = value


class SaveCompletion:
    """
    一次 save 的完成通道

    适配器持久化成功后调用 succeed()：先标记为已持久化，再依次执行 on_save 回调、commit_changes、
    分发 saved 事件并解析 Future；失败时调用 fail(error)。
    """

    def __init__(self, record: 'Record', on_save: Optional[SaveCallback], future: 'Future[Record]'):
        self.record = record
        self.on_save = on_save
        self.future = future

    @property
    def done(self) -> bool:
        return self.future.done()

    def succeed(self) -> None:
        record = self.record
        # 行已写入，on_save 失败时也不能再走 create
        record._persisted = True
        if self.on_save is not None:
            try:
                self.on_save(record)
            except Exception as exc:
                self.future.set_exception(exc)
                return

        record.commit_changes()
        record.schema.handlers.dispatch('saved', record)
        self.future.set_result(record)

    def fail(self, error: BaseException) -> None:
        logger.debug("save of %r failed: %s", self.record, error)
        self.future.set_exception(error)


class Record:
    """
    符合某个 Schema 的可变实体

    字段既可以通过 get/set 访问，也可以作为属性或下标访问：
        task.get('name') / task.name / task['name']
    """

    __slots__ = ('_schema', '_accessors', '_values', '_changed', '_original', '_persisted')

    def __init__(self, schema: 'Schema', accessors: Mapping[str, FieldAccessor]):
        object.__setattr__(self, '_schema', schema)
        object.__setattr__(self, '_accessors', accessors)
        object.__setattr__(self, '_values', {})
        object.__setattr__(self, '_changed', {})
        object.__setattr__(self, '_original', {})
        object.__setattr__(self, '_persisted', False)

    @property
    def schema(self) -> 'Schema':
        return self._schema

    @property
    def is_new(self) -> bool:
        """尚未持久化（save 将走 create）"""
        return not self._persisted

    @property
    def changes(self) -> Mapping[str, Any]:
        return MappingProxyType(self._changed)

    def _accessor(self, key: str) -> FieldAccessor:
        accessor = self._accessors.get(key)
        if accessor is None:
            raise UnknownFieldError(self._schema.name, key)
        return accessor

    def get(self, key: str) -> Any:
        return self._accessor(key).get(self)

    def set(self, key: str, value: Any) -> 'Record':
        self._accessor(key).set(self, value)
        return self

    def has_changes(self) -> bool:
        return bool(self._changed)

    def original_value(self, key: str) -> Any:
        """
        获取字段在上次提交时的值

        定位待更新的行必须使用该值，而不是当前值。
        """
        if key in self._original:
            return self._original[key]
        return self._values.get(key)

    def commit_changes(self) -> 'Record':
        """以当前 values 作为新的基线，清空 changed 与 original"""
        self._changed.clear()
        self._original.clear()
        return self

    def save(self, on_save: Optional[SaveCallback] = None) -> 'Future[Record]':
        """
        把变更交给 Schema 注册的持久化处理器

        新记录走 create，已持久化记录走 update。不等待处理完成，
        返回的 Future 在适配器确认后解析为记录本身；失败时 Future 携带异常。
        同一记录在上一次 save 完成前再次 save 是不安全的。

        Args:
            on_save: 持久化成功后、提交变更前调用的回调

        Returns:
            解析为该记录的 Future
        """
        event_name = 'create' if self.is_new else 'update'
        future: 'Future[Record]' = Future()
        completion = SaveCompletion(self, on_save, future)

        handler = self._schema.handlers.get_handler(event_name)
        if handler is None:
            completion.fail(AdapterError(
                f"No '{event_name}' handler registered",
                schema_name=self._schema.name
            ))
            return future

        logger.debug("dispatching %s for %r with changes %r", event_name, self, self._changed)
        try:
            handler(self, dict(self._changed), completion)
        except Exception as exc:
            if completion.done:
                raise
            completion.fail(exc)
        return future

    def to_dict(self) -> Mapping[str, Any]:
        """当前值的只读视图"""
        return MappingProxyType(self._values)

    def __getattr__(self, name: str) -> Any:
        if name.startswith('_'):
            raise AttributeError(name)
        accessor = self._accessors.get(name)
        if accessor is None:
            raise AttributeError(
                f"'{self._schema.name}' record has no field '{name}'"
            )
        return accessor.get(self)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith('_'):
            object.__setattr__(self, name, value)
        else:
            self.set(name, value)

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __contains__(self, key: object) -> bool:
        return key in self._accessors

    def __repr__(self) -> str:
        return f"<{self._schema.name} {dict(self._values)!r}>"


class RecordFactory:
    """为一个 Schema 编译访问器表并创建记录"""

    def __init__(self, schema: 'Schema'):
        self.schema = schema
        self._accessors: Optional[Dict[str, FieldAccessor]] = None

    @property
    def compiled(self) -> bool:
        return self._accessors is not None

    def compile(self) -> Mapping[str, FieldAccessor]:
        """编译访问器表，只执行一次"""
        if self._accessors is None:
            self._accessors = {
                field.key: FieldAccessor(field) for field in self.schema.columns_store
            }
        return MappingProxyType(self._accessors)

    def create(
        self,
        initial_values: Optional[Mapping[str, Any]] = None,
        persisted: Optional[bool] = None
    ) -> Record:
        """
        创建记录

        初始数据经访问器写入后立即丢弃对应的 changed / original，
        因此新建或从查询结果注入的记录都不会是脏的。

        Args:
            initial_values: 初始数据，Schema 未声明的键被忽略
            persisted: 是否已持久化；None 表示按初始数据中是否带主键值判断

        Returns:
            记录实例
        """
        accessors = self.compile()
        record = Record(self.schema, accessors)

        for key, value in (initial_values or {}).items():
            accessor = accessors.get(key)
            if accessor is None:
                continue
            accessor.set(record, value)
            record._changed.pop(key, None)
            record._original.pop(key, None)

        if persisted is None:
            pk = self.schema.primary_key
            persisted = pk is not None and record._values.get(pk) is not None
        record._persisted = persisted
        return record
