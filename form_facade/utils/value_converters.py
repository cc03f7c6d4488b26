"""标量值转换工具.

序列化时把标量统一转换为字符串,保证客户端拿到的形状稳定.
"""

from __future__ import annotations

from datetime import date, datetime, time


def stringify(value: object) -> str | None:
    """把标量值转换为字符串,None 保持为 None.

    Args:
        value: 从被包装对象读出的原始值.

    Returns:
        字符串形式; 布尔值输出 ``"true"``/``"false"``, 日期时间输出 ISO 8601.

    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return value.decode(errors="replace")
    return str(value)


def capitalize_message(message: object) -> str:
    """首字母大写、其余小写,与校验消息的展示约定一致."""
    return str(message).capitalize()


__all__ = ["capitalize_message", "stringify"]
