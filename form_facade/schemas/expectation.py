"""由白名单树生成 pydantic model 并过滤参数.

白名单树的形状:
- 标量字段: ``"name"``
- 单个嵌套对象: ``{"author": [...]}``
- 嵌套集合: ``{"comments": [[...]]}``
- 根包裹: ``{"post": [...]}``
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date, datetime, time
from decimal import Decimal
from functools import lru_cache
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field, create_model
from werkzeug.datastructures import FileStorage

from form_facade.constants import ErrorMessages, UnpermittedParametersAction
from form_facade.errors import ParameterFilteringError
from form_facade.schemas.base import PermittedParamsSchema, StrictPermittedParamsSchema
from form_facade.schemas.validation import validate_or_raise
from form_facade.utils.structlog_config import log_debug, log_warning

PERMITTED_SCALAR_TYPES: tuple[type, ...] = (str, bool, int, float, Decimal, datetime, date, time, FileStorage)

_STRING_LIKE_TYPES = (str, bytes, bytearray)

# 冻结后的白名单树: 标量为 str, 嵌套为 (name, is_array, children)
FrozenItem = str | tuple[str, bool, tuple[Any, ...]]


def _ensure_permitted_scalar(value: Any) -> Any:
    if value is None or isinstance(value, PERMITTED_SCALAR_TYPES):
        return value
    raise ValueError(f"参数必须为标量值, 实际为 {type(value).__name__}")


def _coerce_indexed_collection(value: Any) -> Any:
    """把 ``{"0": {...}, "1": {...}}`` 形式的表单集合转换为列表."""
    if isinstance(value, Mapping):
        keys = list(value)
        if all(isinstance(key, int) or (isinstance(key, str) and key.isdigit()) for key in keys):
            return [value[key] for key in sorted(keys, key=int)]
        raise ValueError("集合参数必须为列表或以数字为键的映射")
    if isinstance(value, _STRING_LIKE_TYPES):
        raise ValueError("集合参数必须为列表")
    return value


PermittedScalar = Annotated[Any, BeforeValidator(_ensure_permitted_scalar)]


def freeze_expectation(items: Sequence[Any]) -> tuple[FrozenItem, ...]:
    """把白名单列表转换为可哈希的形式, 便于缓存生成的 model."""
    frozen: list[FrozenItem] = []
    for item in items:
        if isinstance(item, str):
            frozen.append(item)
            continue
        if not isinstance(item, Mapping):
            raise TypeError(f"白名单元素必须为字符串或映射: {item!r}")
        for name, children in item.items():
            is_array = _is_array_expectation(children)
            nested = children[0] if is_array else children
            frozen.append((str(name), is_array, freeze_expectation(nested)))
    return tuple(frozen)


def _is_array_expectation(children: Any) -> bool:
    return isinstance(children, list) and len(children) == 1 and isinstance(children[0], list)


@lru_cache(maxsize=256)
def build_expectation_model(
    items: tuple[FrozenItem, ...],
    *,
    strict: bool = False,
    model_name: str = "PermittedParams",
) -> type[BaseModel]:
    """根据冻结后的白名单生成 pydantic model.

    字段使用 ``f0``/``f1`` 等内部名称, 请求键通过 alias 映射,
    因此可以安全使用 ``_destroy``、``model_config`` 之类的键.
    """
    base = StrictPermittedParamsSchema if strict else PermittedParamsSchema
    definitions: dict[str, Any] = {}
    for index, item in enumerate(items):
        if isinstance(item, str):
            definitions[f"f{index}"] = (PermittedScalar, Field(default=None, alias=item))
            continue
        name, is_array, children = item
        child = build_expectation_model(children, strict=strict, model_name=f"{model_name}_{name}")
        if is_array:
            annotation: Any = Annotated[list[child] | None, BeforeValidator(_coerce_indexed_collection)]
        else:
            annotation = child | None
        definitions[f"f{index}"] = (annotation, Field(default=None, alias=name))
    return create_model(model_name, __base__=base, **definitions)


@lru_cache(maxsize=256)
def _build_root_model(root: str, items: tuple[FrozenItem, ...], *, strict: bool) -> type[BaseModel]:
    # 严格模式只作用于 root 内部, root 之外的键(如 csrf_token)不参与过滤
    child = build_expectation_model(items, strict=strict, model_name=f"PermittedParams_{root}")
    return create_model(f"ExpectedParams_{root}", __base__=PermittedParamsSchema, payload=(child, Field(alias=root)))


def filter_parameters(
    data: Mapping[str, Any],
    expectation: Any,
    *,
    action: UnpermittedParametersAction = UnpermittedParametersAction.IGNORE,
) -> dict[str, Any]:
    """按白名单树过滤参数.

    Args:
        data: 已转换为普通 dict/list 的原始参数.
        expectation: 白名单树, 可为列表或 ``{root: 列表}``.
        action: 白名单之外参数的处理策略.

    Returns:
        只包含白名单键的 dict; root 存在时返回 root 下的内容.

    Raises:
        ParameterFilteringError: 缺少 root、形状不符或严格模式下出现未允许的键.

    """
    strict = action is UnpermittedParametersAction.RAISE
    root, items = _split_root(expectation)
    frozen = freeze_expectation(items)
    if root is None:
        model = build_expectation_model(frozen, strict=strict)
    else:
        model = _build_root_model(root, frozen, strict=strict)

    try:
        validated = validate_or_raise(model, dict(data))
    except ParameterFilteringError as exc:
        log_warning("参数过滤失败", module=__name__, root=root, path=".".join(exc.path), exception=exc)
        raise

    dumped = validated.model_dump(by_alias=True, exclude_unset=True)
    permitted = dumped if root is None else dumped[root]
    scoped = data if root is None else data[root]
    if root is not None and not scoped:
        raise ParameterFilteringError(
            ErrorMessages.PARAMETER_MISSING.format(key=root),
            path=(root,),
            message_key="PARAMETER_MISSING",
        )

    if action is UnpermittedParametersAction.LOG:
        prefix = () if root is None else (root,)
        unpermitted = collect_unpermitted(scoped, frozen, prefix=prefix)
        if unpermitted:
            log_warning("存在未允许的参数", module=__name__, unpermitted=list(unpermitted))

    log_debug("参数过滤完成", module=__name__, root=root, keys=sorted(permitted))
    return permitted


def collect_unpermitted(
    data: Any,
    items: tuple[FrozenItem, ...],
    *,
    prefix: tuple[str, ...] = (),
) -> tuple[str, ...]:
    """返回白名单之外的参数路径(点号分隔).

    仅在校验通过后调用, 因此嵌套值的形状已确定.
    """
    if not isinstance(data, Mapping):
        return ()
    scalars = {item for item in items if isinstance(item, str)}
    nested = {item[0]: item for item in items if not isinstance(item, str)}
    found: list[str] = []
    for key, value in data.items():
        path = (*prefix, str(key))
        if key in scalars:
            continue
        if key not in nested:
            found.append(".".join(path))
            continue
        _, is_array, children = nested[key]
        if value is None:
            continue
        if is_array:
            elements = _coerce_indexed_collection(value)
            for index, element in enumerate(elements):
                found.extend(collect_unpermitted(element, children, prefix=(*path, str(index))))
        else:
            found.extend(collect_unpermitted(value, children, prefix=path))
    return tuple(found)


def _split_root(expectation: Any) -> tuple[str | None, Sequence[Any]]:
    if isinstance(expectation, Mapping):
        if len(expectation) != 1:
            raise TypeError("带 root 的白名单必须只有一个键")
        ((root, items),) = expectation.items()
        return str(root), items
    if isinstance(expectation, Sequence) and not isinstance(expectation, _STRING_LIKE_TYPES):
        return None, expectation
    raise TypeError(f"白名单必须为列表或单键映射: {expectation!r}")


__all__ = [
    "PERMITTED_SCALAR_TYPES",
    "build_expectation_model",
    "collect_unpermitted",
    "filter_parameters",
    "freeze_expectation",
]
