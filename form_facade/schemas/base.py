"""参数白名单 schema 基础设施."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class PermittedParamsSchema(BaseModel):
    """白名单参数的基础 schema.

    约定:
    - 默认忽略未知字段, 白名单之外的键直接丢弃.
    - 字段名通过 alias 映射到请求键, 兼容以下划线开头的键(如 `_destroy`).
    """

    model_config = ConfigDict(extra="ignore", arbitrary_types_allowed=True)


class StrictPermittedParamsSchema(BaseModel):
    """严格模式的白名单 schema.

    约定:
    - 拒绝未知字段, 避免"拼错参数却被静默忽略"的隐患.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)


__all__ = ["PermittedParamsSchema", "StrictPermittedParamsSchema"]
