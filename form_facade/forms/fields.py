"""表单字段描述与访问器.

字段描述是不可变值,读写访问器在声明时一次性构建并登记到 schema 的分发表中.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from form_facade.errors import SchemaDeclarationError

if TYPE_CHECKING:
    from form_facade.forms.model_form import ModelForm
    from form_facade.types import ReadAccessor, WriteAccessor


class FieldKind(str, Enum):
    """字段形状."""

    SCALAR = "scalar"
    OBJECT = "object"
    ARRAY = "array"

    @property
    def is_nested(self) -> bool:
        return self is not FieldKind.SCALAR


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """单个已声明字段的元数据.

    Attributes:
        name: 对外暴露的字段名.
        read: 读访问器; False 表示不可读(不参与序列化).
        write: 写访问器; False 表示不可写(不进入白名单).
        attribute: 被包装对象上的属性名, 用于查找校验消息.
        kind: 字段形状.
        form: 嵌套字段的子表单类型, 标量字段为 None.

    """

    name: str
    read: ReadAccessor
    write: WriteAccessor
    attribute: str
    kind: FieldKind = FieldKind.SCALAR
    form: type[ModelForm] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise SchemaDeclarationError(f"字段名必须为非空字符串: {self.name!r}")
        if self.kind.is_nested and self.form is None:
            raise SchemaDeclarationError(f"嵌套字段 {self.name} 缺少子表单")
        if not self.kind.is_nested and self.form is not None:
            raise SchemaDeclarationError(f"标量字段 {self.name} 不能指定子表单")

    @property
    def readable(self) -> bool:
        return self.read is not False

    @property
    def writable(self) -> bool:
        return self.write is not False

    @classmethod
    def build(
        cls,
        name: str,
        *,
        read: ReadAccessor | None = None,
        write: WriteAccessor | None = None,
        attribute: str | None = None,
        kind: FieldKind = FieldKind.SCALAR,
        form: type[ModelForm] | None = None,
    ) -> FieldDescriptor:
        """按默认规则补全访问器后构建字段描述.

        attribute 缺省为 name, read/write 缺省为 attribute.
        """
        if not isinstance(name, str) or not name:
            raise SchemaDeclarationError(f"字段名必须为非空字符串: {name!r}")
        resolved_attribute = attribute or name
        return cls(
            name=name,
            read=resolved_attribute if read is None else read,
            write=resolved_attribute if write is None else write,
            attribute=resolved_attribute,
            kind=kind,
            form=form,
        )


@dataclass(frozen=True, slots=True)
class FieldAccessor:
    """字段读写分发项, getter/setter 为 None 表示对应方向被禁用."""

    getter: Callable[[Any], Any] | None
    setter: Callable[[Any, Any], None] | None

    @classmethod
    def for_descriptor(cls, descriptor: FieldDescriptor) -> FieldAccessor:
        return cls(
            getter=_build_getter(descriptor.read),
            setter=_build_setter(descriptor.write),
        )


def _build_getter(read: ReadAccessor) -> Callable[[Any], Any] | None:
    if read is False:
        return None
    if callable(read):
        reader = read
    elif isinstance(read, str):
        def reader(target: Any) -> Any:
            return getattr(target, read)
    else:
        raise SchemaDeclarationError(f"读访问器必须为属性名或可调用对象: {read!r}")

    def getter(target: Any) -> Any:
        if target is None:
            return None
        return reader(target)

    return getter


def _build_setter(write: WriteAccessor) -> Callable[[Any, Any], None] | None:
    if write is False:
        return None
    if callable(write):
        return write
    if isinstance(write, str):
        def setter(target: Any, value: Any) -> None:
            setattr(target, write, value)

        return setter
    raise SchemaDeclarationError(f"写访问器必须为属性名或可调用对象: {write!r}")


__all__ = ["FieldAccessor", "FieldDescriptor", "FieldKind"]
