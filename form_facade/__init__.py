"""Form Facade - 模型表单门面.

按表单类型声明一次字段, 从同一份声明派生数据快照、校验错误快照与入参白名单树,
并负责把过滤后的参数写回被包装的领域对象.

Quick Start:
    >>> from form_facade import Field, ModelForm, One, Parameters
    >>> class PersonForm(ModelForm):
    ...     name = Field()
    >>> class PostForm(ModelForm):
    ...     name = Field(attribute="title")
    ...     author = One(form=PersonForm)
    >>> form = PostForm(post)
    >>> form.as_json()
    {'post': {'name': 'Hi', 'author': {'name': 'Amy'}}}
    >>> form.set_fields(Parameters({"post": {"name": "Hello"}}))
"""

from form_facade.errors import (
    FormFacadeError,
    ParameterFilteringError,
    PersistenceFailure,
    SchemaDeclarationError,
)
from form_facade.forms import (
    Field,
    FieldDescriptor,
    FieldKind,
    FieldSchema,
    Many,
    ModelForm,
    One,
)
from form_facade.settings import Settings, get_settings
from form_facade.utils.parameters import Parameters
from form_facade.utils.structlog_config import configure_structlog

__version__ = "0.3.0"

__all__ = [
    "Field",
    "FieldDescriptor",
    "FieldKind",
    "FieldSchema",
    "FormFacadeError",
    "Many",
    "ModelForm",
    "One",
    "ParameterFilteringError",
    "Parameters",
    "PersistenceFailure",
    "SchemaDeclarationError",
    "Settings",
    "configure_structlog",
    "get_settings",
]
