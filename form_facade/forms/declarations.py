"""类体内的字段声明标记.

示例:
    >>> class PostForm(ModelForm):
    ...     name = Field(attribute="title")
    ...     author = One(form=PersonForm)
    ...     comments = Many(allow_destroy=True, configure=lambda form: form.field("body"))

标记在 ``ModelForm.__init_subclass__`` 中按类体顺序应用, 随后从类命名空间移除.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from form_facade.forms.fields import FieldDescriptor
    from form_facade.forms.model_form import ModelForm
    from form_facade.types import ReadAccessor, WriteAccessor


@dataclass(frozen=True, slots=True)
class Field:
    """标量字段声明."""

    read: ReadAccessor | None = None
    write: WriteAccessor | None = None
    attribute: str | None = None

    def declare(self, form: type[ModelForm], name: str) -> FieldDescriptor:
        return form.field(name, read=self.read, write=self.write, attribute=self.attribute)


@dataclass(frozen=True, slots=True)
class One:
    """单个嵌套对象声明."""

    form: type[ModelForm] | None = None
    allow_destroy: bool = False
    read: ReadAccessor | None = None
    write: WriteAccessor | None = None
    attribute: str | None = None
    configure: Callable[[type[ModelForm]], None] | None = None

    def declare(self, form: type[ModelForm], name: str) -> FieldDescriptor:
        return form.one(name, **self._options())

    def _options(self) -> dict[str, object]:
        return {
            "form": self.form,
            "allow_destroy": self.allow_destroy,
            "read": self.read,
            "write": self.write,
            "attribute": self.attribute,
            "configure": self.configure,
        }


@dataclass(frozen=True, slots=True)
class Many(One):
    """嵌套集合声明."""

    def declare(self, form: type[ModelForm], name: str) -> FieldDescriptor:
        return form.many(name, **self._options())


FieldDeclaration = Field | One

__all__ = ["Field", "FieldDeclaration", "Many", "One"]
