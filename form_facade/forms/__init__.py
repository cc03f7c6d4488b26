"""表单声明与投影."""

from .declarations import Field, Many, One
from .fields import FieldAccessor, FieldDescriptor, FieldKind
from .model_form import ModelForm
from .schema import FieldSchema

__all__ = [
    "Field",
    "FieldAccessor",
    "FieldDescriptor",
    "FieldKind",
    "FieldSchema",
    "Many",
    "ModelForm",
    "One",
]
