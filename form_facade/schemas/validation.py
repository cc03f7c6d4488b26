"""Schema 校验与错误映射."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from form_facade.constants import ErrorMessages
from form_facade.errors import ParameterFilteringError

ModelT = TypeVar("ModelT", bound=BaseModel)

_EXTRA_FORBIDDEN = "extra_forbidden"
_MISSING = "missing"


def validate_or_raise(model: type[ModelT], payload: object) -> ModelT:
    """执行 schema 校验并抛出 ParameterFilteringError.

    Args:
        model: 由白名单树生成的 pydantic model.
        payload: 已转换为普通 dict/list 的参数.

    Raises:
        ParameterFilteringError: 参数形状不符合白名单时抛出, 携带首个出错路径.

    """
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        raise _to_filtering_error(exc) from None


def _to_filtering_error(exc: PydanticValidationError) -> ParameterFilteringError:
    errors = exc.errors()
    if not errors:
        return ParameterFilteringError()

    unpermitted = tuple(_dotted(error.get("loc", ())) for error in errors if error.get("type") == _EXTRA_FORBIDDEN)
    shape_errors = [error for error in errors if error.get("type") != _EXTRA_FORBIDDEN]
    if not shape_errors:
        message = ErrorMessages.UNPERMITTED_PARAMETERS.format(keys=", ".join(unpermitted))
        return ParameterFilteringError(
            message,
            path=_path(errors[0].get("loc", ())),
            unpermitted=unpermitted,
            message_key="UNPERMITTED_PARAMETERS",
        )

    first = shape_errors[0]
    path = _path(first.get("loc", ()))
    if first.get("type") == _MISSING:
        message = ErrorMessages.PARAMETER_MISSING.format(key=".".join(path))
        return ParameterFilteringError(message, path=path, unpermitted=unpermitted, message_key="PARAMETER_MISSING")

    return ParameterFilteringError(
        _first_message(first),
        path=path,
        unpermitted=unpermitted,
    )


def _first_message(error: Any) -> str:
    ctx = error.get("ctx")
    if isinstance(ctx, dict):
        raw_error = ctx.get("error")
        if isinstance(raw_error, BaseException):
            return str(raw_error)
    msg = error.get("msg")
    if isinstance(msg, str) and msg.strip():
        return msg
    return ErrorMessages.PARAMETER_FILTERING_ERROR


def _path(loc: Any) -> tuple[str, ...]:
    return tuple(str(part) for part in loc)


def _dotted(loc: Any) -> str:
    return ".".join(_path(loc))


__all__ = ["validate_or_raise"]
