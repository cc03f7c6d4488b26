import pytest

from form_facade.settings import reset_settings
from form_facade.utils.structlog_config import configure_structlog

_SETTINGS_ENV_KEYS = (
    "FORM_FACADE_UNPERMITTED_PARAMETERS",
    "FORM_FACADE_LOG_LEVEL",
    "FORM_FACADE_LOG_JSON",
    "FORM_FACADE_ENABLE_DEBUG_LOG",
)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """为每个测试隔离配置.

    目标:
    - 避免开发者本机环境变量影响测试稳定性
    - 测试中修改环境变量后重新加载配置
    """
    for key in _SETTINGS_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    reset_settings()
    configure_structlog()
    yield
    reset_settings()
