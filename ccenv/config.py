from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from loguru import logger


CACHE_VERSION = "1.0.0"
NUMERIC_ENV_KEYS = ["CLAUDE_CODE_DISABLE_NONESSENTIAL_TRAFFIC"]

# assistant-owned values: kept exactly as read (strings, numbers, booleans, null...)
SettingsValue = Any
LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


def now_iso() -> str:
    """UTC timestamp with millisecond precision, e.g. 2024-05-01T12:00:00.000Z"""
    stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class EnvVar(_CamelModel):
    key: str
    value: str = ""


class Environment(_CamelModel):
    id: str
    name: str
    env: List[EnvVar] = Field(default_factory=list)
    created_at: str = Field(default_factory=now_iso, alias="createdAt")
    updated_at: str = Field(default_factory=now_iso, alias="updatedAt")

    def to_mapping(self) -> Dict[str, str]:
        return {var.key.strip(): var.value for var in self.env if var.key.strip()}


class EnvironmentFormData(_CamelModel):
    name: str = ""
    env: List[EnvVar] = Field(default_factory=list)


class ClaudeSettings(BaseModel):
    """Partial view of ~/.claude/settings.json.

    Only ``env`` is owned by this tool; every other field lands in
    ``model_extra`` and is written back untouched.
    """

    model_config = ConfigDict(extra="allow")

    env: Optional[Dict[str, SettingsValue]] = None

    _key_order: List[str] = PrivateAttr(default_factory=list)

    @field_validator("env", mode="before")
    @classmethod
    def _env_must_be_mapping(cls, value):
        # a malformed env is replaced on the next apply/clear anyway
        return value if isinstance(value, dict) else None

    @classmethod
    def from_document(cls, data: Dict) -> "ClaudeSettings":
        settings = cls.model_validate(data)
        settings._key_order = list(data.keys())
        return settings

    def to_document(self) -> Dict:
        """Rebuild the settings object, keeping keys in the order they were read."""
        fields = dict(self.model_extra or {})
        if self.env is not None:
            fields["env"] = dict(self.env)

        document = {key: fields.pop(key) for key in self._key_order if key in fields}
        document.update(fields)
        return document


class CacheDocument(_CamelModel):
    version: str = CACHE_VERSION
    last_updated: Optional[str] = Field(default=None, alias="lastUpdated")
    environments: List[Environment] = Field(default_factory=list)


class ManagerConfig(BaseModel):
    version: str = "1.0.0"
    numeric_keys: List[str] = Field(default_factory=lambda: list(NUMERIC_ENV_KEYS))
    mask_secrets: bool = True
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level '{value}', expected one of {', '.join(LOG_LEVELS)}")
        return level


class ConfigManager:
    def __init__(self):
        self.config_dir = self._get_config_dir()
        self.config_path = self.config_dir / "config.yaml"
        self.ensure_config_dir()

    def _get_config_dir(self) -> Path:
        import platform
        if platform.system() == "Windows":
            return Path.home() / "AppData" / "Roaming" / "ccenv"
        else:
            return Path.home() / ".config" / "ccenv"

    def ensure_config_dir(self):
        self.config_dir.mkdir(parents=True, exist_ok=True)

        if not self.config_path.exists():
            self.save_config(ManagerConfig())

    def get_config(self) -> ManagerConfig:
        try:
            if self.config_path.exists():
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    data = yaml.safe_load(f)
                    return ManagerConfig(**data) if data else ManagerConfig()
        except Exception as e:
            logger.warning(f"Ignoring unreadable config {self.config_path}: {e}")
        return ManagerConfig()

    def save_config(self, config: ManagerConfig):
        with open(self.config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config.model_dump(), f, default_flow_style=False)
