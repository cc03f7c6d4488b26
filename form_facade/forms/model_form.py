"""模型表单门面.

一个表单类型声明一次字段, 即可派生三种视图:
- ``as_json``: 数据快照
- ``errors``: 与数据快照同形的校验错误快照
- ``expectation``: 过滤入参用的白名单树

表单实例只引用被包装对象, 不持有任何需要释放的资源.
注意: 表单 schema 直接或间接嵌套自身时, 投影会无限递归直到 RecursionError.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, ClassVar

from form_facade.constants import DESTROY_FIELD_NAME, NESTED_ATTRIBUTES_SUFFIX
from form_facade.errors import SchemaDeclarationError
from form_facade.forms.declarations import FieldDeclaration
from form_facade.forms.fields import FieldDescriptor, FieldKind
from form_facade.forms.projectors import project_errors, serialize
from form_facade.forms.schema import EMPTY_SCHEMA, FieldSchema
from form_facade.types import SupportsPersistence, SupportsValidationMessages
from form_facade.utils.parameters import Parameters
from form_facade.utils.structlog_config import log_debug, log_info

if TYPE_CHECKING:
    from collections.abc import Sequence

    from form_facade.types import Expectation, JsonPayload, ReadAccessor, RootOption, WriteAccessor

ConfigureCallback = Callable[[type["ModelForm"]], None]


class ModelForm:
    """包装领域对象的表单基类.

    Attributes:
        params_root: root 默认值. True 表示按被包装对象的类型名(小写)推断,
            False 表示不包裹, 字符串表示固定 root.

    Example:
        >>> class PersonForm(ModelForm):
        ...     name = Field()
        >>> class PostForm(ModelForm):
        ...     name = Field(attribute="title")
        ...     author = One(form=PersonForm)
        >>> PostForm(post).as_json()
        {'post': {'name': 'Hi', 'author': {'name': 'Amy'}}}

    """

    params_root: ClassVar[RootOption] = True
    _schema: ClassVar[FieldSchema] = EMPTY_SCHEMA

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        declarations = [
            (name, value) for name, value in list(vars(cls).items()) if isinstance(value, FieldDeclaration)
        ]
        for name, declaration in declarations:
            delattr(cls, name)
            declaration.declare(cls, name)

    def __init__(self, model_object: Any = None, *, root: RootOption = None, **component_props: Any) -> None:
        object.__setattr__(self, "_object", model_object)
        object.__setattr__(self, "_component_props", dict(component_props))
        if root is not None:
            object.__setattr__(self, "params_root", root)

    # ------------------------------------------------------------------
    # 字段声明
    # ------------------------------------------------------------------
    @classmethod
    def schema(cls) -> FieldSchema:
        return cls._schema

    @classmethod
    def field(
        cls,
        name: str,
        *,
        read: ReadAccessor | None = None,
        write: WriteAccessor | None = None,
        attribute: str | None = None,
    ) -> FieldDescriptor:
        """声明标量字段.

        Args:
            name: 对外字段名.
            read: 读访问器, False 表示不参与序列化.
            write: 写访问器, False 表示不进入白名单.
            attribute: 被包装对象上的属性名, 缺省为 name.

        """
        descriptor = FieldDescriptor.build(name, read=read, write=write, attribute=attribute)
        return cls._declare(descriptor)

    @classmethod
    def one(
        cls,
        name: str,
        *,
        form: type[ModelForm] | None = None,
        allow_destroy: bool = False,
        read: ReadAccessor | None = None,
        write: WriteAccessor | None = None,
        attribute: str | None = None,
        configure: ConfigureCallback | None = None,
    ) -> FieldDescriptor:
        """声明单个嵌套对象字段."""
        return cls._relation(
            name,
            kind=FieldKind.OBJECT,
            form=form,
            allow_destroy=allow_destroy,
            read=read,
            write=write,
            attribute=attribute,
            configure=configure,
        )

    @classmethod
    def many(
        cls,
        name: str,
        *,
        form: type[ModelForm] | None = None,
        allow_destroy: bool = False,
        read: ReadAccessor | None = None,
        write: WriteAccessor | None = None,
        attribute: str | None = None,
        configure: ConfigureCallback | None = None,
    ) -> FieldDescriptor:
        """声明嵌套集合字段."""
        return cls._relation(
            name,
            kind=FieldKind.ARRAY,
            form=form,
            allow_destroy=allow_destroy,
            read=read,
            write=write,
            attribute=attribute,
            configure=configure,
        )

    @classmethod
    def expectation(cls, *, root: str | None = None) -> Expectation:
        """返回可写字段的白名单树, root 为已解析的键.

        需要按实例推断 root 时使用 ``params_expectation``.

        Raises:
            TypeError: root 不是字符串或 None.

        """
        return cls._schema.expectation(root=root)

    @classmethod
    def _relation(
        cls,
        name: str,
        *,
        kind: FieldKind,
        form: type[ModelForm] | None,
        allow_destroy: bool,
        read: ReadAccessor | None,
        write: WriteAccessor | None,
        attribute: str | None,
        configure: ConfigureCallback | None,
    ) -> FieldDescriptor:
        _validate_field_name(name)
        if form is None:
            form = cls._create_form_class_for(name)
        elif not (isinstance(form, type) and issubclass(form, ModelForm)):
            raise SchemaDeclarationError(f"嵌套字段 {name} 的 form 必须是 ModelForm 子类: {form!r}")
        elif allow_destroy or configure is not None:
            # 派生子类, 避免修改调用方共享的表单
            form = cls._derive_form_class(form, name)

        if allow_destroy:
            form.field(DESTROY_FIELD_NAME, read=False)
        if configure is not None:
            configure(form)

        if write is None and attribute is None and not name.endswith(NESTED_ATTRIBUTES_SUFFIX):
            write = f"{name}{NESTED_ATTRIBUTES_SUFFIX}"
        descriptor = FieldDescriptor.build(name, read=read, write=write, attribute=attribute, kind=kind, form=form)
        return cls._declare(descriptor)

    @classmethod
    def _declare(cls, descriptor: FieldDescriptor) -> FieldDescriptor:
        if cls is ModelForm:
            raise SchemaDeclarationError("不能在 ModelForm 基类上声明字段")
        cls._schema = cls._schema.with_field(descriptor)
        log_debug(
            "声明表单字段",
            module=__name__,
            form=cls.__qualname__,
            field=descriptor.name,
            kind=descriptor.kind.value,
        )
        return descriptor

    @classmethod
    def _create_form_class_for(cls, field_name: str) -> type[ModelForm]:
        class_name = f"Anonymous{_camelize(field_name)}Form"
        return type(
            class_name,
            (ModelForm,),
            {"__module__": cls.__module__, "__qualname__": f"{cls.__qualname__}.{class_name}"},
        )

    @classmethod
    def _derive_form_class(cls, form: type[ModelForm], field_name: str) -> type[ModelForm]:
        class_name = f"{_camelize(field_name)}{form.__name__}"
        return type(
            class_name,
            (form,),
            {"__module__": cls.__module__, "__qualname__": f"{cls.__qualname__}.{class_name}"},
        )

    # ------------------------------------------------------------------
    # 字段读写分发
    # ------------------------------------------------------------------
    def __getattr__(self, name: str) -> Any:
        accessor = type(self)._schema.accessor(name)
        if accessor is None or accessor.getter is None:
            raise AttributeError(f"{type(self).__name__!r} 没有可读字段 {name!r}")
        return accessor.getter(self._object)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in type(self)._schema:
            self.write_field(name, value)
            return
        object.__setattr__(self, name, value)

    def read_field(self, name: str) -> Any:
        """读取字段值; 表单类上同名 property 优先于生成的读取器."""
        override = _field_override(type(self), name)
        if override is not None and override.fget is not None:
            return override.fget(self)
        accessor = type(self)._schema.accessor(name)
        if accessor is None or accessor.getter is None:
            return None
        return accessor.getter(self._object)

    def write_field(self, name: str, value: Any) -> None:
        """写入字段值; 表单类上同名 property 的 setter 优先于生成的写入器.

        Raises:
            AttributeError: 字段未声明或已禁用写入.

        """
        override = _field_override(type(self), name)
        if override is not None and override.fset is not None:
            override.fset(self, value)
            return
        accessor = type(self)._schema.accessor(name)
        if accessor is None:
            raise AttributeError(f"{type(self).__name__!r} 没有字段 {name!r}")
        if accessor.setter is None:
            raise AttributeError(f"{type(self).__name__!r} 的字段 {name!r} 不可写")
        accessor.setter(self._object, value)

    # ------------------------------------------------------------------
    # 实例操作
    # ------------------------------------------------------------------
    @property
    def object(self) -> Any:
        return self._object

    @property
    def component_props(self) -> dict[str, Any]:
        return dict(self._component_props)

    def options(self) -> dict[str, Any]:
        """返回前端渲染所需的选项, 子类按需覆盖."""
        return {}

    def resolve_root(self, root: RootOption = None) -> str | None:
        """解析 root.

        None 使用 params_root; True 取被包装对象的类型名(小写), 没有对象时为 None;
        False 表示不包裹; 字符串原样使用.
        """
        option = self.params_root if root is None else root
        match option:
            case True:
                if self._object is None:
                    return None
                return type(self._object).__name__.lower()
            case False:
                return None
            case str():
                return option
            case _:
                raise TypeError(f"root 只能是 bool 或 str: {option!r}")

    def as_json(self, *, root: RootOption = None) -> JsonPayload:
        return serialize(self, root=root)

    @property
    def attributes(self) -> JsonPayload:
        return self.as_json()

    def errors(self, *, root: RootOption = None) -> JsonPayload:
        return project_errors(self, root=root)

    def form_props(self, *, root: RootOption = None) -> dict[str, Any]:
        """组合交给展示层的完整载荷."""
        return {
            **self._component_props,
            "data": self.as_json(root=root),
            "options": self.options(),
            "errors": self.errors(root=root),
        }

    def params_expectation(self, *, root: RootOption = None) -> Expectation:
        """按实例解析 root 后返回白名单树."""
        return type(self).expectation(root=self.resolve_root(root))

    def set_fields(self, params: Mapping[str, Any], *, root: RootOption = None) -> None:
        """写入请求参数.

        未过滤的 Parameters 先按白名单过滤(带 root 时只取 root 下的内容),
        已过滤的 Parameters 或普通映射视为可信输入直接写入.

        Raises:
            ParameterFilteringError: 未过滤参数的形状不符合白名单.

        """
        if isinstance(params, Parameters) and not params.permitted:
            params = params.expect(self.params_expectation(root=root))
        self.assign_attributes(params)

    def assign_attributes(self, values: Mapping[str, Any]) -> None:
        for key, value in values.items():
            self.write_field(key, value)

    def validation_messages(self) -> Mapping[str, Sequence[str]]:
        """读取被包装对象的校验消息, 没有对象或对象不支持时返回空映射."""
        target = self._object
        if target is None:
            return {}
        if isinstance(target, SupportsValidationMessages):
            return target.validation_messages() or {}
        errors = getattr(target, "errors", None)
        if isinstance(errors, Mapping):
            return errors
        return {}

    def save(self) -> bool:
        persistence: SupportsPersistence = self._object
        saved = bool(persistence.save())
        if not saved:
            log_info(
                "表单保存未成功",
                module=__name__,
                form=type(self).__qualname__,
                fields=sorted(self.validation_messages()),
            )
        return saved

    def save_or_raise(self) -> Any:
        """委托被包装对象保存, 异常原样抛出."""
        persistence: SupportsPersistence = self._object
        return persistence.save_or_raise()


def _field_override(form: type[ModelForm], name: str) -> property | None:
    if name in _BASE_ATTRIBUTES:
        return None
    override = getattr(form, name, None)
    return override if isinstance(override, property) else None


def _validate_field_name(name: object) -> None:
    if not isinstance(name, str) or not name:
        raise SchemaDeclarationError(f"字段名必须为非空字符串: {name!r}")


def _camelize(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


_BASE_ATTRIBUTES = frozenset(dir(ModelForm))

__all__ = ["ModelForm"]
