"""Form Facade 的结构化日志配置与辅助函数.

本包作为库被引入时不会修改全局 structlog 配置, 日志沿用宿主应用的处理器链.
独立运行或宿主应用希望使用本包的处理器链时, 显式调用 ``configure_structlog``.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, cast

import structlog

from form_facade.settings import get_settings

if TYPE_CHECKING:
    from structlog.typing import BindableLogger, EventDict, Processor

    from form_facade.settings import Settings

PACKAGE_NAME = "form_facade"
PACKAGE_VERSION = "0.3.0"


class DebugFilter:
    """根据配置决定是否丢弃 DEBUG 日志的处理器.

    Attributes:
        enabled: 是否启用 DEBUG 日志.

    """

    def __init__(self, *, enabled: bool = False) -> None:
        self.enabled = enabled

    def set_enabled(self, *, enabled: bool) -> None:
        """设置是否启用 DEBUG 日志."""
        self.enabled = enabled

    def __call__(self, logger: BindableLogger, method_name: str, event_dict: EventDict) -> EventDict:
        """处理日志事件,根据配置决定是否丢弃 DEBUG 日志.

        Raises:
            structlog.DropEvent: 当 DEBUG 日志未启用时抛出,丢弃该日志.

        """
        del logger
        if method_name == "debug" and not self.enabled:
            raise structlog.DropEvent
        return event_dict


class StructlogConfig:
    """structlog 配置核心类.

    负责配置处理器链与渲染器.只在显式调用 ``configure`` 时生效,重复调用只会配置一次.

    Example:
        >>> config = StructlogConfig()
        >>> config.configure()
        >>> logger = get_logger('my_module')

    """

    def __init__(self) -> None:
        self.debug_filter = DebugFilter(enabled=False)
        self.configured = False

    def configure(self, settings: Settings | None = None, *, force: bool = False) -> None:
        """初始化 structlog 处理器(幂等).

        Args:
            settings: 配置对象,缺省时读取 ``get_settings()``.
            force: 为 True 时忽略已配置标记重新配置.

        """
        if self.configured and not force:
            return

        resolved = settings or get_settings()
        self.debug_filter.set_enabled(enabled=resolved.enable_debug_log)
        logging.getLogger(PACKAGE_NAME).setLevel(resolved.log_level)

        processors = [
            self.debug_filter,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            self._add_global_context,
            self._get_renderer(resolved),
        ]
        structlog.configure(
            processors=cast("list[Processor]", processors),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        self.configured = True

    @staticmethod
    def _add_global_context(
        _logger: BindableLogger,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        """附加包名、版本等全局上下文."""
        event_dict["app_name"] = PACKAGE_NAME
        event_dict["app_version"] = PACKAGE_VERSION
        event_dict["logger_name"] = getattr(_logger, "name", "unknown")
        return event_dict

    @staticmethod
    def _get_renderer(settings: Settings) -> Processor:
        """根据配置与终端能力返回渲染器."""
        if settings.log_json:
            return structlog.processors.JSONRenderer(ensure_ascii=False)
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


structlog_config = StructlogConfig()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """获取结构化日志记录器.

    Args:
        name: 日志记录器名称,通常使用模块名.

    Example:
        >>> logger = get_logger('form_facade.forms')
        >>> logger.info('字段已声明', field='title')

    """
    return structlog.get_logger(name)


def configure_structlog(settings: Settings | None = None, *, force: bool = False) -> None:
    """按配置初始化全局 structlog, 由宿主应用在启动时显式调用.

    Args:
        settings: 配置对象,缺省时读取 ``get_settings()``.
        force: 为 True 时重新配置.

    """
    structlog_config.configure(settings, force=force)


def should_log_debug() -> bool:
    """检查是否应该记录调试日志, 未调用 ``configure_structlog`` 时始终为 False."""
    return structlog_config.configured and structlog_config.debug_filter.enabled


def log_debug(message: str, module: str = PACKAGE_NAME, **kwargs: Any) -> None:
    """记录调试级别日志,仅在启用调试日志时输出."""
    if not should_log_debug():
        return
    get_logger(module).debug(message, module=module, **kwargs)


def log_info(message: str, module: str = PACKAGE_NAME, **kwargs: Any) -> None:
    """记录信息级别日志."""
    get_logger(module).info(message, module=module, **kwargs)


def log_warning(
    message: str,
    module: str = PACKAGE_NAME,
    exception: Exception | None = None,
    **kwargs: Any,
) -> None:
    """记录警告级别日志.

    Args:
        message: 日志消息.
        module: 模块名称.
        exception: 可选的异常对象.
        **kwargs: 额外的上下文信息.

    """
    logger = get_logger(module)
    if exception:
        logger.warning(message, module=module, exception=str(exception), **kwargs)
    else:
        logger.warning(message, module=module, **kwargs)


__all__ = [
    "DebugFilter",
    "StructlogConfig",
    "configure_structlog",
    "get_logger",
    "log_debug",
    "log_info",
    "log_warning",
    "should_log_debug",
    "structlog_config",
]
