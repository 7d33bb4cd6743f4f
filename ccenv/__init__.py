"""
ccenv - Claude Code 环境配置切换工具

管理多套命名的环境变量，并把其中一套写入 Claude Code 的 settings.json。
"""

__version__ = "0.1.0"
__description__ = "Switch the env block of Claude Code's settings.json between named environments"

from .config import (
    ClaudeSettings,
    CacheDocument,
    ConfigManager,
    Environment,
    EnvironmentFormData,
    EnvVar,
    ManagerConfig,
)
from .errors import EnvManagerError, ErrorKind
from .file_ops import FileOperations
from .host import LocalFileAccess
from .store import EnvironmentStore
from .validation import (
    format_date,
    is_valid_number,
    is_valid_url,
    validate_environment_form,
)

__all__ = [
    "ClaudeSettings",
    "CacheDocument",
    "ConfigManager",
    "Environment",
    "EnvironmentFormData",
    "EnvVar",
    "ManagerConfig",
    "EnvManagerError",
    "ErrorKind",
    "FileOperations",
    "LocalFileAccess",
    "EnvironmentStore",
    "format_date",
    "is_valid_number",
    "is_valid_url",
    "validate_environment_form",
]
