"""Form Facade - 统一配置读取与校验.

说明:
- Settings 使用 `pydantic-settings` 的 `BaseSettings` 从环境变量与本地 `.env`(可选)读取配置.
- 配置只影响参数过滤策略与日志输出,不改变表单投影结果.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from form_facade.constants import LogLevel, UnpermittedParametersAction

DOTENV_PATH = Path.cwd() / ".env"

DEFAULT_LOG_LEVEL = LogLevel.INFO.value
DEFAULT_UNPERMITTED_PARAMETERS = UnpermittedParametersAction.IGNORE


class Settings(BaseSettings):
    """运行时设置集合."""

    model_config = SettingsConfigDict(
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
    )

    unpermitted_parameters: UnpermittedParametersAction = Field(
        default=DEFAULT_UNPERMITTED_PARAMETERS,
        validation_alias="FORM_FACADE_UNPERMITTED_PARAMETERS",
    )
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, validation_alias="FORM_FACADE_LOG_LEVEL")
    log_json: bool = Field(default=False, validation_alias="FORM_FACADE_LOG_JSON")
    enable_debug_log: bool = Field(default=False, validation_alias="FORM_FACADE_ENABLE_DEBUG_LOG")

    @field_validator("unpermitted_parameters", mode="before")
    @classmethod
    def _normalize_action(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = value.upper()
        if normalized not in LogLevel.__members__:
            allowed = ", ".join(LogLevel.__members__)
            raise ValueError(f"log_level 只能是 {allowed}")
        return normalized

    @classmethod
    def load(cls) -> Settings:
        """从环境变量加载 Settings."""
        load_dotenv(dotenv_path=DOTENV_PATH if DOTENV_PATH.exists() else None, override=False)
        return cls()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """返回进程内缓存的配置."""
    return Settings.load()


def reset_settings() -> None:
    """清空缓存,下次读取时重新加载环境变量."""
    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings"]
