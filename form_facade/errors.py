"""Form Facade - 统一异常定义.

说明:
- 本模块只负责定义异常类型与语义字段,不包含 HTTP/Flask 等传输层细节.
- 被包装对象在持久化时抛出的异常由表单原样透传,不做转换.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from form_facade.constants import ErrorCategory, ErrorMessages, ErrorSeverity


@dataclass(frozen=True, slots=True)
class ExceptionMetadata:
    """异常的元信息."""

    category: ErrorCategory
    severity: ErrorSeverity
    default_message_key: str


class FormFacadeError(Exception):
    """统一的基础异常.

    Args:
        message: 自定义错误文案,若为空则根据 ``message_key`` 推导.
        message_key: 自定义消息键.
        extra: 结构化日志附加字段.
        severity: 错误严重度.
        category: 错误分类.
    """

    metadata = ExceptionMetadata(
        category=ErrorCategory.SYSTEM,
        severity=ErrorSeverity.HIGH,
        default_message_key="INTERNAL_ERROR",
    )

    def __init__(
        self,
        message: str | None = None,
        *,
        message_key: str | None = None,
        extra: Mapping[str, object] | None = None,
        severity: ErrorSeverity | None = None,
        category: ErrorCategory | None = None,
    ) -> None:
        """初始化基础异常.

        Args:
            message: 直接使用的错误提示,缺省时会根据 message_key 推导.
            message_key: 覆盖默认 message_key 的可选值.
            extra: 结构化日志附加字段.
            severity: 错误严重度.
            category: 错误分类.
        """
        self.message_key = message_key or self.metadata.default_message_key
        self.message = message or getattr(ErrorMessages, self.message_key, ErrorMessages.INTERNAL_ERROR)
        self.extra = dict(extra or {})
        self.severity = severity or self.metadata.severity
        self.category = category or self.metadata.category
        super().__init__(self.message)

    @property
    def recoverable(self) -> bool:
        """表示该异常是否可恢复."""

        return self.severity in (ErrorSeverity.LOW, ErrorSeverity.MEDIUM)


class SchemaDeclarationError(FormFacadeError):
    """表示表单字段声明不合法(如嵌套字段缺少可解析的子表单).

    属于构建期的编程错误,不应被捕获后重试.
    """

    metadata = ExceptionMetadata(
        category=ErrorCategory.CONFIGURATION,
        severity=ErrorSeverity.CRITICAL,
        default_message_key="SCHEMA_DECLARATION_ERROR",
    )


class ParameterFilteringError(FormFacadeError):
    """表示请求参数的形状不符合表单白名单.

    Attributes:
        path: 出错位置的键路径,根级错误为空元组.
        unpermitted: 严格模式下被拒绝的参数路径.
    """

    metadata = ExceptionMetadata(
        category=ErrorCategory.VALIDATION,
        severity=ErrorSeverity.LOW,
        default_message_key="PARAMETER_FILTERING_ERROR",
    )

    def __init__(
        self,
        message: str | None = None,
        *,
        path: Iterable[str] = (),
        unpermitted: Iterable[str] = (),
        message_key: str | None = None,
        extra: Mapping[str, object] | None = None,
    ) -> None:
        self.path = tuple(str(part) for part in path)
        self.unpermitted = tuple(unpermitted)
        merged_extra = {"path": ".".join(self.path), **dict(extra or {})}
        if self.unpermitted:
            merged_extra["unpermitted"] = list(self.unpermitted)
        super().__init__(message, message_key=message_key, extra=merged_extra)


class PersistenceFailure(FormFacadeError):
    """被包装对象在 ``save_or_raise`` 中可抛出的持久化失败.

    表单只负责透传,不会包装或翻译该异常.
    """

    metadata = ExceptionMetadata(
        category=ErrorCategory.PERSISTENCE,
        severity=ErrorSeverity.MEDIUM,
        default_message_key="PERSISTENCE_FAILED",
    )


__all__ = [
    "ExceptionMetadata",
    "FormFacadeError",
    "ParameterFilteringError",
    "PersistenceFailure",
    "SchemaDeclarationError",
]
