"""Logger configuration for ccenv."""

import click
from loguru import logger


def _stderr_sink(message) -> None:
    # resolve stderr per message so redirected streams (e.g. CliRunner) are honoured
    click.echo(message, err=True, nl=False)


def setup_logger(level: str = "WARNING") -> None:
    """Configure loguru with a single stderr handler.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logger.remove()

    logger.add(
        _stderr_sink,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level.upper(),
        colorize=False,
    )

    logger.debug(f"Logger initialized with level={level}")
