"""Form Facade - 常量定义模块

统一管理错误分类、默认文案以及字段命名约定.
"""

from enum import Enum


class LogLevel(Enum):
    """日志级别枚举."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ErrorCategory(Enum):
    """错误分类枚举."""

    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    PERSISTENCE = "persistence"
    SYSTEM = "system"


class ErrorSeverity(Enum):
    """错误严重程度枚举."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorMessages:
    """错误消息常量."""

    INTERNAL_ERROR = "内部错误"
    SCHEMA_DECLARATION_ERROR = "表单字段声明无效"
    PARAMETER_FILTERING_ERROR = "请求参数不符合表单白名单"
    PARAMETER_MISSING = "缺少必需参数: {key}"
    UNPERMITTED_PARAMETERS = "存在未允许的参数: {keys}"
    PERSISTENCE_FAILED = "保存失败"


class UnpermittedParametersAction(str, Enum):
    """遇到白名单之外参数时的处理策略."""

    IGNORE = "ignore"
    LOG = "log"
    RAISE = "raise"


# 嵌套字段写入约定: `<name>_attributes`
NESTED_ATTRIBUTES_SUFFIX = "_attributes"
# allow_destroy 时为子表单追加的只写字段
DESTROY_FIELD_NAME = "_destroy"
# 嵌套属性校验消息的路径分隔符, 如 "children.name"
ERROR_PATH_SEPARATOR = "."
ERROR_MESSAGE_JOINER = ";"
