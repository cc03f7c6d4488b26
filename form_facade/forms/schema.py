"""字段 schema: 每个表单类型持有的有序字段表.

schema 是不可变值, 声明字段时返回新实例; 子类从父类的 schema 值出发继续声明,
因此父子之间不会共享可变存储.
"""

from __future__ import annotations

from collections.abc import Iterator
from types import MappingProxyType
from typing import TYPE_CHECKING, assert_never

from form_facade.forms.fields import FieldAccessor, FieldDescriptor, FieldKind

if TYPE_CHECKING:
    from collections.abc import Mapping

    from form_facade.types import Expectation, ExpectationItem, ExpectationList


class FieldSchema:
    """有序的字段名 -> 字段描述映射, 附带读写分发表."""

    __slots__ = ("_accessors", "_fields")

    def __init__(
        self,
        fields: Mapping[str, FieldDescriptor] | None = None,
        accessors: Mapping[str, FieldAccessor] | None = None,
    ) -> None:
        field_map = dict(fields or {})
        accessor_map = dict(accessors or {})
        for name, descriptor in field_map.items():
            if name not in accessor_map:
                accessor_map[name] = FieldAccessor.for_descriptor(descriptor)
        self._fields = MappingProxyType(field_map)
        self._accessors = MappingProxyType(accessor_map)

    def with_field(self, descriptor: FieldDescriptor) -> FieldSchema:
        """返回追加(或覆盖)字段后的新 schema.

        覆盖已有字段时保留其首次声明的位置.
        """
        accessor = FieldAccessor.for_descriptor(descriptor)
        fields = {**self._fields, descriptor.name: descriptor}
        accessors = {**self._accessors, descriptor.name: accessor}
        return FieldSchema(fields, accessors)

    def lookup(self, name: str) -> FieldDescriptor | None:
        return self._fields.get(name)

    def accessor(self, name: str) -> FieldAccessor | None:
        return self._accessors.get(name)

    def descriptors(self) -> tuple[FieldDescriptor, ...]:
        return tuple(self._fields.values())

    def names(self) -> tuple[str, ...]:
        return tuple(self._fields)

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"FieldSchema({', '.join(self._fields)})"

    def expectation(self, *, root: str | None = None) -> Expectation:
        """生成可写字段的白名单树.

        标量字段输出字段名, 单个嵌套对象输出 ``{name: 子树}``,
        嵌套集合输出 ``{name: [子树]}``. root 非空时整体包裹为 ``{root: 列表}``.

        Raises:
            TypeError: root 不是已解析的字符串键(如传入 True/False).

        """
        if root is not None and not isinstance(root, str):
            raise TypeError(f"root 必须是已解析的字符串键或 None, 布尔值请先经 resolve_root 解析: {root!r}")
        expected: ExpectationList = [
            self._expectation_item(descriptor) for descriptor in self.descriptors() if descriptor.writable
        ]
        if root is None:
            return expected
        return {root: expected}

    @staticmethod
    def _expectation_item(descriptor: FieldDescriptor) -> ExpectationItem:
        kind = descriptor.kind
        match kind:
            case FieldKind.SCALAR:
                return descriptor.name
            case FieldKind.OBJECT:
                return {descriptor.name: _child_expectation(descriptor)}
            case FieldKind.ARRAY:
                return {descriptor.name: [_child_expectation(descriptor)]}
            case _:
                assert_never(kind)


def _child_expectation(descriptor: FieldDescriptor) -> ExpectationList:
    assert descriptor.form is not None
    child = descriptor.form.schema().expectation(root=None)
    assert isinstance(child, list)
    return child


EMPTY_SCHEMA = FieldSchema()

__all__ = ["EMPTY_SCHEMA", "FieldSchema"]
