import json
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from loguru import logger

from .config import (
    CACHE_VERSION,
    NUMERIC_ENV_KEYS,
    CacheDocument,
    ClaudeSettings,
    EnvVar,
    SettingsValue,
    now_iso,
)
from .host import LocalFileAccess


SETTINGS_RELATIVE_PATH = Path(".claude") / "settings.json"
CACHE_FILE_NAME = ".claude-code-env-manager.json"

_LEADING_INT = re.compile(r"^\s*([+-]?[0-9]+)")


def parse_int_prefix(value: str) -> Optional[int]:
    """Integer value of the leading digits of ``value``, or None when there are none."""
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


def build_env_mapping(env_vars: Iterable[EnvVar],
                      numeric_keys: Optional[List[str]] = None) -> Dict[str, SettingsValue]:
    """Turn an environment's variable list into the settings ``env`` mapping.

    Blank keys are skipped and keys are trimmed; a later duplicate wins.
    Values of ``numeric_keys`` become integers when they start with one.
    """
    if numeric_keys is None:
        numeric_keys = NUMERIC_ENV_KEYS

    env_record: Dict[str, SettingsValue] = {}
    for env_var in env_vars:
        key = env_var.key.strip()
        if not key:
            continue

        value: SettingsValue = env_var.value
        if key in numeric_keys:
            number = parse_int_prefix(env_var.value)
            if number is not None:
                value = number

        env_record[key] = value
    return env_record


class FileOperations:
    """Reads and writes the settings and cache documents through a host capability.

    Paths are resolved against the host's home directory on every call.
    JSON, validation and I/O errors propagate to the caller.
    """

    def __init__(self, host: Optional[LocalFileAccess] = None,
                 numeric_keys: Optional[List[str]] = None):
        self.host = host or LocalFileAccess()
        self.numeric_keys = list(NUMERIC_ENV_KEYS if numeric_keys is None else numeric_keys)

    def read_file(self, file_path: Union[str, Path]) -> Optional[str]:
        return self.host.read_file(file_path)

    def write_file(self, file_path: Union[str, Path], content: str) -> str:
        return self.host.write_file(file_path, content)

    def get_home_dir(self) -> Path:
        return Path(self.host.get_home_dir())

    @property
    def settings_path(self) -> Path:
        return self.get_home_dir() / SETTINGS_RELATIVE_PATH

    @property
    def cache_path(self) -> Path:
        return self.get_home_dir() / CACHE_FILE_NAME

    def read_claude_settings(self) -> Optional[ClaudeSettings]:
        content = self.read_file(self.settings_path)
        if not content:
            return None

        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError(f"Settings file {self.settings_path} is not a JSON object")
        return ClaudeSettings.from_document(data)

    def write_claude_settings(self, settings: Union[ClaudeSettings, Dict]) -> str:
        document = settings.to_document() if isinstance(settings, ClaudeSettings) else settings
        content = json.dumps(document, indent=2, ensure_ascii=False)
        logger.debug(f"Writing settings to {self.settings_path}")
        return self.write_file(self.settings_path, content)

    def clear_claude_environment(self) -> None:
        existing = self.read_claude_settings()

        if existing is None:
            self.write_claude_settings({})
            return

        existing.env = None
        self.write_claude_settings(existing)

    def apply_claude_environment(self, env_vars: Iterable[EnvVar]) -> Dict[str, SettingsValue]:
        env_record = build_env_mapping(env_vars, self.numeric_keys)

        settings = self.read_claude_settings()
        if settings is None:
            settings = ClaudeSettings()
        settings.env = env_record

        self.write_claude_settings(settings)
        return env_record

    def read_environment_cache(self) -> Optional[CacheDocument]:
        content = self.read_file(self.cache_path)
        if not content:
            return None

        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError(f"Cache file {self.cache_path} is not a JSON object")
        return CacheDocument.model_validate(data)

    def write_environment_cache(self, data: Dict) -> str:
        cache_data = {
            "version": CACHE_VERSION,
            "lastUpdated": now_iso(),
            **data,
        }
        if isinstance(cache_data.get("environments"), list):
            cache_data["environments"] = [
                env.model_dump(by_alias=True) if hasattr(env, "model_dump") else env
                for env in cache_data["environments"]
            ]

        content = json.dumps(cache_data, indent=2, ensure_ascii=False)
        logger.debug(f"Writing environment cache to {self.cache_path}")
        return self.write_file(self.cache_path, content)
