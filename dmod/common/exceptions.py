"""
DMod 异常定义

声明期错误（字段重复、约束非法等）同步抛出；
持久化期错误通过 save/find 返回的 Future 传递。
"""

from typing import Any, Dict, Optional


class DModException(Exception):
    """DMod 基础异常类"""

    def __init__(
        self,
        message: str,
        *,
        schema_name: Optional[str] = None,
        field_name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.schema_name = schema_name
        self.field_name = field_name
        self.details: Dict[str, Any] = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """序列化为字典，空属性不输出"""
        result: Dict[str, Any] = {
            'error': self.__class__.__name__,
            'message': self.message,
        }
        if self.schema_name is not None:
            result['schema_name'] = self.schema_name
        if self.field_name is not None:
            result['field_name'] = self.field_name
        if self.details:
            result['details'] = self.details
        return result


# ========== 声明期异常 ==========

class SchemaError(DModException):
    """模型声明异常基类"""


class DuplicateFieldError(SchemaError):
    """字段重复异常"""
    def __init__(self, schema_name: Optional[str], field_name: str):
        super().__init__(
            f"Duplicate field '{field_name}' in schema '{schema_name}'",
            schema_name=schema_name,
            field_name=field_name
        )


class UnknownFieldError(SchemaError):
    """字段不存在异常"""
    def __init__(self, schema_name: Optional[str], field_name: str):
        super().__init__(
            f"Unknown field '{field_name}' in schema '{schema_name}'",
            schema_name=schema_name,
            field_name=field_name
        )


class InvalidConstraintError(SchemaError):
    """约束声明非法（如字段已属于其他唯一约束组）"""


class FieldDefinitionError(SchemaError):
    """字段属性冲突（如修改自增字段的类型）"""


class SchemaRegistrationError(DModException, TypeError):
    """注册的对象不是 Schema 实例"""


class HandlerRegistrationError(DModException):
    """持久化处理器注册异常"""


# ========== 查询异常 ==========

class SearchSyntaxError(DModException, SyntaxError):
    """查询条件格式非法"""


# ========== 持久化期异常 ==========

class AdapterError(DModException):
    """适配器执行异常"""


class RecordNotFoundError(AdapterError):
    """更新语句未匹配到任何记录"""
    def __init__(self, schema_name: str, identity: Dict[str, Any]):
        super().__init__(
            f"No record in '{schema_name}' matched {identity!r}",
            schema_name=schema_name,
            details={'identity': identity}
        )


class AdapterNotFoundError(DModException):
    """适配器未注册"""
    def __init__(self, name: str, available: Any = None):
        super().__init__(
            f"Adapter '{name}' is not registered",
            details={'available': list(available or [])}
        )


class ConstraintFieldNotFoundError(UnknownFieldError, InvalidConstraintError):
    """唯一约束引用了尚未声明的字段"""
