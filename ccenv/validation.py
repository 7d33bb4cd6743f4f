import math
import re
from datetime import datetime
from typing import List
from urllib.parse import urlsplit

from .config import EnvironmentFormData


_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*$")


def validate_environment_form(data: EnvironmentFormData) -> List[str]:
    """校验环境表单，返回错误信息列表（为空表示通过）"""
    errors = []

    if not data.name.strip():
        errors.append("Environment name cannot be empty")

    if len(data.env) == 0:
        errors.append("At least one environment variable is required")

    keys = [env_var.key.strip() for env_var in data.env if env_var.key.strip()]
    if not keys:
        errors.append("At least one valid environment variable is required")

    if len(keys) != len(set(keys)):
        errors.append("Duplicate environment variable names exist")

    return errors


def is_valid_url(url: str) -> bool:
    """验证是否为带协议的绝对URL"""
    if not url or any(ch.isspace() for ch in url):
        return False

    try:
        parts = urlsplit(url)
        parts.port
    except ValueError:
        return False

    if not _SCHEME.match(parts.scheme):
        return False

    return bool(parts.netloc or parts.path)


def is_valid_number(value: str, min_value: float, max_value: float) -> bool:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False

    if math.isnan(number):
        return False

    return min_value <= number <= max_value


def format_date(date_string: str) -> str:
    """把ISO时间戳格式化为本地时间，如 05/01/2024, 02:30 PM"""
    date = datetime.fromisoformat(date_string.replace("Z", "+00:00"))
    return date.astimezone().strftime("%m/%d/%Y, %I:%M %p")
