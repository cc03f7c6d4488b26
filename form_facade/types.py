"""表单与被包装对象之间共享的类型定义.

统一描述被包装对象的协议、访问器与白名单树的形状.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any, Literal, Protocol, TypeAlias, runtime_checkable

ReadAccessor: TypeAlias = "str | Callable[[Any], Any] | Literal[False]"
WriteAccessor: TypeAlias = "str | Callable[[Any, Any], None] | Literal[False]"
RootOption: TypeAlias = "bool | str | None"

ExpectationItem: TypeAlias = "str | dict[str, ExpectationList | list[ExpectationList]]"
ExpectationList: TypeAlias = "list[ExpectationItem]"
Expectation: TypeAlias = "ExpectationList | dict[str, ExpectationList]"

JsonPayload: TypeAlias = "dict[str, Any]"
ErrorMessagesMap: TypeAlias = "Mapping[str, Sequence[str]]"


@runtime_checkable
class SupportsPersistence(Protocol):
    """约束具备持久化能力的被包装对象."""

    def save(self) -> bool:
        """保存对象,失败时返回 False."""
        ...

    def save_or_raise(self) -> None:
        """保存对象,失败时抛出对象自身的异常."""
        ...


@runtime_checkable
class SupportsValidationMessages(Protocol):
    """约束能够输出校验消息的被包装对象.

    返回值以属性路径为键, 嵌套属性使用点号路径(如 ``children.name``).
    """

    def validation_messages(self) -> ErrorMessagesMap:
        """返回属性路径到消息列表的映射,未校验或全部通过时为空."""
        ...


__all__ = [
    "ErrorMessagesMap",
    "Expectation",
    "ExpectationItem",
    "ExpectationList",
    "JsonPayload",
    "ReadAccessor",
    "RootOption",
    "SupportsPersistence",
    "SupportsValidationMessages",
    "WriteAccessor",
]
