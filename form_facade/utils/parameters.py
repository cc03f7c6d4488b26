"""未经过滤的请求参数包装.

目标:
- 区分"未过滤"与"已过滤"的参数, 表单只对未过滤参数执行白名单过滤.
- 统一处理 JSON dict 与 Werkzeug MultiDict(form/query), 支持 ``post[author][name]`` 形式的键.

注意:
- 本模块只负责"取参形状", 不做业务校验.
- 白名单过滤由 schema 层(pydantic)完成.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any, cast

from flask import has_request_context, request
from werkzeug.datastructures import CombinedMultiDict

from form_facade.constants import UnpermittedParametersAction
from form_facade.errors import ParameterFilteringError
from form_facade.schemas.expectation import filter_parameters
from form_facade.settings import get_settings

if TYPE_CHECKING:
    from flask import Request

    from form_facade.types import Expectation

_STRING_LIKE_TYPES = (str, bytes, bytearray)
_BRACKET_PATTERN = re.compile(r"\[([^\[\]]*)\]")


class Parameters(Mapping[str, Any]):
    """请求参数映射.

    Attributes:
        permitted: 是否已经过白名单过滤. 未过滤的参数交给表单时会先执行 ``expect``.

    """

    __slots__ = ("_data", "_permitted")

    def __init__(self, data: Mapping[str, Any] | None = None, *, permitted: bool = False) -> None:
        self._data: dict[str, Any] = _to_plain(data or {})
        self._permitted = permitted

    @property
    def permitted(self) -> bool:
        return self._permitted

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Parameters({self._data!r}, permitted={self._permitted})"

    def to_dict(self) -> dict[str, Any]:
        """返回参数的深拷贝."""
        return copy.deepcopy(self._data)

    def permit_all(self) -> Parameters:
        """不经过滤直接标记为已允许, 仅用于可信来源."""
        return Parameters(self._data, permitted=True)

    def expect(
        self,
        expectation: Expectation,
        *,
        on_unpermitted: UnpermittedParametersAction | str | None = None,
    ) -> Parameters:
        """按白名单树过滤参数.

        Args:
            expectation: 白名单树, ``{root: 列表}`` 时要求 root 存在并返回 root 下的内容.
            on_unpermitted: 未允许参数的处理策略, 缺省读取配置.

        Returns:
            已过滤的 Parameters.

        Raises:
            ParameterFilteringError: 参数形状不符合白名单.

        """
        action = (
            get_settings().unpermitted_parameters
            if on_unpermitted is None
            else UnpermittedParametersAction(on_unpermitted)
        )
        permitted = filter_parameters(self._data, expectation, action=action)
        return Parameters(permitted, permitted=True)

    @classmethod
    def from_multidict(cls, payload: Any) -> Parameters:
        """解析 MultiDict 兼容对象.

        - ``name``: 多值时取最后一个.
        - ``tags[]``: 固定为列表.
        - ``post[author][name]``: 展开为嵌套字典.
        - ``post[comments][0][body]``: 展开为以数字为键的字典, 过滤时按集合处理.
        - ``post[comments][][body]``: 展开为字典列表, 同名键的第 N 个值写入第 N 个元素.
        - 多个空段(如 ``post[][][body]``)或 ``post[][tags][]`` 不受支持, 抛出 ParameterFilteringError.
        """
        multi_dict = cast(Any, payload)
        parsed: dict[str, Any] = {}
        for key in list(multi_dict.keys()):
            values = list(multi_dict.getlist(key) or [])
            _assign_nested(parsed, key, values)
        return cls(parsed)

    @classmethod
    def from_request(cls, req: Request | None = None) -> Parameters:
        """从 Flask 请求构造参数.

        JSON 请求使用请求体, 其他请求合并 query、form 与上传文件.
        """
        if req is None:
            if not has_request_context():
                raise RuntimeError("Parameters.from_request 需要在请求上下文中调用")
            req = cast("Request", request)

        if req.is_json:
            body = req.get_json(silent=True)
            if body is None:
                return cls({})
            if not isinstance(body, Mapping):
                raise ParameterFilteringError("JSON 请求体必须为对象")
            return cls(body)

        return cls.from_multidict(CombinedMultiDict([req.args, req.form, req.files]))


def _split_key(key: str) -> list[str]:
    head, bracket, rest = key.partition("[")
    if not bracket or not head:
        return [key]
    tail = bracket + rest
    parts = _BRACKET_PATTERN.findall(tail)
    if "".join(f"[{part}]" for part in parts) != tail:
        return [key]
    return [head, *parts]


def _assign_nested(target: dict[str, Any], key: str, values: list[Any]) -> None:
    parts = _split_key(str(key))
    as_list = len(parts) > 1 and parts[-1] == ""
    if as_list:
        parts = parts[:-1]
    if "" in parts:
        _assign_collection(target, key, parts, values, as_list=as_list)
        return

    *parents, leaf = parts
    node = _descend(target, parents)
    if as_list:
        node[leaf] = list(values)
    else:
        node[leaf] = values[-1] if values else None


def _assign_collection(
    target: dict[str, Any],
    key: str,
    parts: list[str],
    values: list[Any],
    *,
    as_list: bool,
) -> None:
    """处理 ``post[comments][][body]``: 第 N 个值写入集合第 N 个元素."""
    marker = parts.index("")
    head, rest = parts[:marker], parts[marker + 1 :]
    if as_list or not rest or "" in rest:
        raise ParameterFilteringError(f"不支持的参数键: {key}", path=(key,))

    *parents, name = head
    node = _descend(target, parents)
    collection = node.get(name)
    if not isinstance(collection, list):
        collection = []
        node[name] = collection
    for index, value in enumerate(values):
        while len(collection) <= index:
            collection.append({})
        element = collection[index]
        if not isinstance(element, dict):
            raise ParameterFilteringError(f"参数键与已有列表冲突: {key}", path=(key,))
        *inner, leaf = rest
        _descend(element, inner)[leaf] = value


def _descend(node: dict[str, Any], parts: list[str]) -> dict[str, Any]:
    for part in parts:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    return node


def _to_plain(value: Any) -> Any:
    if isinstance(value, Parameters):
        return value.to_dict()
    if isinstance(value, Mapping):
        return {key: _to_plain(item) for key, item in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, _STRING_LIKE_TYPES):
        return [_to_plain(item) for item in value]
    return value


__all__ = ["Parameters"]
