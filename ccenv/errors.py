from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    LOAD = "load"
    PARSE = "parse"
    IO = "io"


class EnvManagerError(Exception):
    """Failure recorded by the environment store.

    ``kind`` lets callers branch on the cause without matching messages.
    """

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.LOAD):
        super().__init__(message)
        self.message = message
        self.kind = kind

    def __str__(self) -> str:
        return self.message


def classify_error(exc: BaseException) -> ErrorKind:
    if isinstance(exc, EnvManagerError):
        return exc.kind
    # json.JSONDecodeError and pydantic's ValidationError are both ValueErrors
    if isinstance(exc, ValueError):
        return ErrorKind.PARSE
    if isinstance(exc, OSError):
        return ErrorKind.IO
    return ErrorKind.LOAD


def wrap_error(exc: BaseException, default_message: str) -> EnvManagerError:
    """Turn any failure into an EnvManagerError, keeping its message when it has one."""
    if isinstance(exc, EnvManagerError):
        return exc
    message: Optional[str] = str(exc) or None
    return EnvManagerError(message or default_message, classify_error(exc))
