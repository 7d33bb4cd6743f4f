import sys
from typing import List, Union


SENSITIVE_MARKERS = ("KEY", "TOKEN", "SECRET", "PASSWORD")


def is_sensitive_key(key: str) -> bool:
    """判断环境变量名是否可能包含密钥"""
    upper = key.upper()
    return any(marker in upper for marker in SENSITIVE_MARKERS)


def mask_sensitive_value(value: str, mask_char: str = "*") -> str:
    """遮盖敏感信息"""
    if len(value) <= 8:
        return mask_char * len(value)

    visible_chars = 4
    return (
        value[:visible_chars]
        + mask_char * (len(value) - visible_chars * 2)
        + value[-visible_chars:]
    )


def display_value(key: str, value: Union[str, int, float], mask: bool = True) -> str:
    """按变量名决定是否遮盖后用于展示的值"""
    text = str(value)
    if mask and is_sensitive_key(key):
        return mask_sensitive_value(text)
    return text


def truncate_string(text: str, max_length: int, suffix: str = "...") -> str:
    """截断字符串到指定长度"""
    if len(text) <= max_length:
        return text

    return text[: max_length - len(suffix)] + suffix


def format_table(headers: List[str], rows: List[List[str]], min_width: int = 4) -> str:
    """格式化表格显示"""
    if not rows:
        return ""

    col_widths = [max(len(str(header)), min_width) for header in headers]
    for row in rows:
        for i, cell in enumerate(row[: len(col_widths)]):
            col_widths[i] = max(col_widths[i], len(str(cell)))

    def render(cells: List[str]) -> str:
        return " | ".join(str(cell).ljust(col_widths[i]) for i, cell in enumerate(cells[: len(col_widths)])).rstrip()

    lines = [render(headers), "-+-".join("-" * width for width in col_widths)]
    lines.extend(render(row) for row in rows)
    return "\n".join(lines)


def colorize(text: str, color: str) -> str:
    """为文本添加颜色（仅在支持的终端中）"""
    if not sys.stdout.isatty():
        return text

    colors = {
        "red": "\033[31m",
        "green": "\033[32m",
        "yellow": "\033[33m",
        "blue": "\033[34m",
        "reset": "\033[0m",
    }

    if color.lower() in colors:
        return f"{colors[color.lower()]}{text}{colors['reset']}"

    return text


def success_message(text: str) -> str:
    return colorize(f"✓ {text}", "green")


def warning_message(text: str) -> str:
    return colorize(f"⚠ {text}", "yellow")
