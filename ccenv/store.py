import time
from typing import Dict, List, Optional

from loguru import logger

from .config import Environment, EnvironmentFormData, EnvVar, SettingsValue, now_iso
from .errors import EnvManagerError, wrap_error
from .file_ops import FileOperations, build_env_mapping


def clean_env_vars(env_vars: List[EnvVar]) -> List[EnvVar]:
    """Drop entries with a blank key and trim the remaining keys."""
    return [
        EnvVar(key=env_var.key.strip(), value=env_var.value)
        for env_var in env_vars
        if env_var.key.strip()
    ]


def _new_environment_id(taken) -> str:
    """Epoch milliseconds, bumped past ids created within the same millisecond."""
    candidate = int(time.time() * 1000)
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


class EnvironmentStore:
    """In-memory list of environments plus the live settings ``env`` view.

    Load failures are recorded in ``error`` and never raised. Mutation
    failures are recorded and then raised as an EnvManagerError.
    """

    def __init__(self, file_ops: Optional[FileOperations] = None):
        self.file_ops = file_ops or FileOperations()
        self.environments: List[Environment] = []
        self.current_settings: Optional[Dict[str, SettingsValue]] = None
        self.is_loading = False
        self.error: Optional[EnvManagerError] = None

    def _record_error(self, exc: BaseException, message: str) -> EnvManagerError:
        error = wrap_error(exc, message)
        self.error = error
        return error

    def load_environments(self) -> None:
        try:
            cache = self.file_ops.read_environment_cache()

            if cache is not None:
                self.environments = list(cache.environments)
                logger.info(f"Loaded {len(self.environments)} environments from cache")
            else:
                self.environments = []
                logger.info("Cache file does not exist, starting with an empty environment list")
        except Exception as e:
            logger.error(f"Failed to load environment configuration: {e}")
            self._record_error(e, "Failed to load environment configuration")
            self.environments = []

    def save_environments(self) -> None:
        try:
            self.file_ops.write_environment_cache({"environments": self.environments})
            logger.debug(f"Saved {len(self.environments)} environments to cache")
        except Exception as e:
            logger.error(f"Failed to save environment configuration: {e}")
            raise self._record_error(e, "Failed to save environment configuration") from e

    def load_current_settings(self) -> None:
        try:
            self.is_loading = True

            settings = self.file_ops.read_claude_settings()
            if settings is not None and settings.env is not None:
                self.current_settings = dict(settings.env)
            else:
                self.current_settings = None
                logger.debug("Settings file has no env field")
        except Exception as e:
            logger.error(f"Failed to load current settings: {e}")
            self._record_error(e, "Failed to load current settings")
            self.current_settings = None
        finally:
            self.is_loading = False

    def get_environment(self, env_id: str) -> Optional[Environment]:
        for environment in self.environments:
            if environment.id == env_id:
                return environment
        return None

    def find_environment(self, ref: str) -> Optional[Environment]:
        """Look an environment up by id first, then by exact name."""
        environment = self.get_environment(ref)
        if environment is not None:
            return environment

        for environment in self.environments:
            if environment.name == ref:
                return environment
        return None

    def active_environment(self) -> Optional[Environment]:
        if not self.current_settings:
            return None

        for environment in self.environments:
            mapping = build_env_mapping(environment.env, self.file_ops.numeric_keys)
            if mapping == self.current_settings:
                return environment
        return None

    def add_environment(self, form_data: EnvironmentFormData) -> Environment:
        timestamp = now_iso()
        environment = Environment(
            id=_new_environment_id({env.id for env in self.environments}),
            name=form_data.name,
            env=clean_env_vars(form_data.env),
            created_at=timestamp,
            updated_at=timestamp,
        )

        self.environments.append(environment)
        self.save_environments()
        return environment

    def update_environment(self, env_id: str, form_data: EnvironmentFormData) -> Optional[Environment]:
        for index, environment in enumerate(self.environments):
            if environment.id != env_id:
                continue

            updated = environment.model_copy(update={
                "name": form_data.name,
                "env": clean_env_vars(form_data.env),
                "updated_at": now_iso(),
            })
            self.environments[index] = updated
            self.save_environments()
            return updated

        return None

    def delete_environment(self, env_id: str) -> bool:
        for index, environment in enumerate(self.environments):
            if environment.id == env_id:
                del self.environments[index]
                self.save_environments()
                return True
        return False

    def apply_environment(self, environment: Environment) -> str:
        try:
            self.is_loading = True
            self.error = None

            self.file_ops.apply_claude_environment(environment.env)
            self.load_current_settings()
            logger.info(f"Applied environment '{environment.name}'")

            return "success"
        except Exception as e:
            logger.error(f"Failed to apply environment '{environment.name}': {e}")
            raise self._record_error(e, "Failed to apply environment") from e
        finally:
            self.is_loading = False

    def clear_current_settings(self) -> bool:
        try:
            self.is_loading = True
            self.error = None

            self.file_ops.clear_claude_environment()
            self.current_settings = None
            logger.info("Cleared env from settings")

            return True
        except Exception as e:
            logger.error(f"Failed to clear configuration: {e}")
            raise self._record_error(e, "Failed to clear configuration") from e
        finally:
            self.is_loading = False

    def clear_error(self) -> None:
        self.error = None
