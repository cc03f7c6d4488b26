"""表单投影: 数据快照与校验错误快照.

两种投影按声明顺序遍历同一个 schema, 嵌套字段递归到子表单, 子表单一律不包裹 root.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, assert_never

from form_facade.constants import ERROR_MESSAGE_JOINER, ERROR_PATH_SEPARATOR
from form_facade.forms.fields import FieldDescriptor, FieldKind
from form_facade.utils.value_converters import capitalize_message, stringify

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from form_facade.forms.model_form import ModelForm
    from form_facade.types import JsonPayload, RootOption


def serialize(form: ModelForm, *, root: RootOption = None) -> JsonPayload:
    """构建数据快照.

    Args:
        form: 表单实例.
        root: root 覆盖项, None 时使用表单的 params_root.

    Returns:
        ``{字段名: 值}``; 解析出 root 时包裹为 ``{root: {...}}``.

    """
    payload: JsonPayload = {}
    for descriptor in form.schema().descriptors():
        if not descriptor.readable:
            continue
        raw = form.read_field(descriptor.name)
        payload[descriptor.name] = _serialize_value(descriptor, raw)
    return _wrap(payload, form.resolve_root(root))


def _serialize_value(descriptor: FieldDescriptor, raw: Any) -> Any:
    kind = descriptor.kind
    match kind:
        case FieldKind.SCALAR:
            return stringify(raw)
        case FieldKind.OBJECT:
            if raw is None:
                return None
            return _child(descriptor, raw).as_json(root=False)
        case FieldKind.ARRAY:
            return [_child(descriptor, item).as_json(root=False) for item in _elements(raw)]
        case _:
            assert_never(kind)


def project_errors(form: ModelForm, *, root: RootOption = None) -> JsonPayload:
    """构建与数据快照同形的错误快照.

    带路径分隔符的消息键属于嵌套属性, 这里直接丢弃, 由子表单递归时重新收集,
    避免同一错误在两个层级重复出现.
    """
    messages = {
        str(key): value
        for key, value in form.validation_messages().items()
        if ERROR_PATH_SEPARATOR not in str(key)
    }
    payload: JsonPayload = {}
    for descriptor in form.schema().descriptors():
        error = _project_field_errors(form, descriptor, messages)
        if error is not None:
            payload[descriptor.name] = error
    return _wrap(payload, form.resolve_root(root))


def _project_field_errors(
    form: ModelForm,
    descriptor: FieldDescriptor,
    messages: Mapping[str, Sequence[str]],
) -> Any:
    kind = descriptor.kind
    match kind:
        case FieldKind.SCALAR:
            return _join_messages(messages.get(descriptor.attribute))
        case FieldKind.OBJECT:
            return _child(descriptor, _read_for_errors(form, descriptor)).errors(root=False)
        case FieldKind.ARRAY:
            return [
                _child(descriptor, item).errors(root=False)
                for item in _elements(_read_for_errors(form, descriptor))
            ]
        case _:
            assert_never(kind)


def _join_messages(messages: Sequence[str] | None) -> str | None:
    if not messages:
        return None
    joined = ERROR_MESSAGE_JOINER.join(capitalize_message(message) for message in messages)
    return joined or None


def _read_for_errors(form: ModelForm, descriptor: FieldDescriptor) -> Any:
    if not descriptor.readable:
        return None
    return form.read_field(descriptor.name)


def _child(descriptor: FieldDescriptor, value: Any) -> ModelForm:
    assert descriptor.form is not None
    return descriptor.form(value)


def _elements(raw: Any) -> Iterable[Any]:
    if raw is None:
        return ()
    return raw


def _wrap(payload: JsonPayload, root: str | None) -> JsonPayload:
    if root is None:
        return payload
    return {root: payload}


__all__ = ["project_errors", "serialize"]
