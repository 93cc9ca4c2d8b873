"""
异常处理测试

覆盖范围：
- 异常继承层次结构
- 异常消息和属性
- to_dict 序列化
"""

import pytest

from dmod import (
    DModException,
    SchemaError,
    DuplicateFieldError,
    UnknownFieldError,
    InvalidConstraintError,
    ConstraintFieldNotFoundError,
    FieldDefinitionError,
    SchemaRegistrationError,
    HandlerRegistrationError,
    SearchSyntaxError,
    AdapterError,
    AdapterNotFoundError,
    RecordNotFoundError,
)


class TestExceptionHierarchy:
    """异常继承关系测试"""

    def test_all_exceptions_inherit_from_base(self):
        for exc_class in [
            SchemaError, DuplicateFieldError, UnknownFieldError, InvalidConstraintError,
            ConstraintFieldNotFoundError, FieldDefinitionError, SchemaRegistrationError,
            HandlerRegistrationError, SearchSyntaxError, AdapterError,
            AdapterNotFoundError, RecordNotFoundError,
        ]:
            assert issubclass(exc_class, DModException), exc_class.__name__

    def test_declaration_errors_are_schema_errors(self):
        for exc_class in [DuplicateFieldError, UnknownFieldError, InvalidConstraintError, FieldDefinitionError]:
            assert issubclass(exc_class, SchemaError)

    def test_builtin_bases(self):
        assert issubclass(SearchSyntaxError, SyntaxError)
        assert issubclass(SchemaRegistrationError, TypeError)
        assert issubclass(RecordNotFoundError, AdapterError)


class TestExceptionAttributes:
    """异常属性测试"""

    def test_base_attributes(self):
        exc = DModException(
            "Test message",
            schema_name="Task",
            field_name="name",
            details={"key": "value"}
        )
        assert exc.message == "Test message"
        assert exc.schema_name == "Task"
        assert exc.field_name == "name"
        assert exc.details == {"key": "value"}
        assert str(exc) == "Test message"

    def test_duplicate_field_to_dict(self):
        d = DuplicateFieldError("Task", "name").to_dict()
        assert d == {
            "error": "DuplicateFieldError",
            "message": "Duplicate field 'name' in schema 'Task'",
            "schema_name": "Task",
            "field_name": "name",
        }

    def test_to_dict_omits_empty(self):
        assert DModException("plain").to_dict() == {"error": "DModException", "message": "plain"}

    def test_search_syntax_error_message(self):
        exc = SearchSyntaxError("bad search", field_name="name")
        assert str(exc) == "bad search"
        assert exc.field_name == "name"

    def test_record_not_found(self):
        exc = RecordNotFoundError("User", {"username": "ghost"})
        assert exc.details["identity"] == {"username": "ghost"}
        assert "ghost" in exc.message

    def test_catch_base(self):
        with pytest.raises(DModException):
            raise UnknownFieldError("Task", "owner")
