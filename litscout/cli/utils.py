"""Shared CLI utilities.

Provides common functionality for all CLI commands.
"""

import asyncio
import functools
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import structlog
import typer

from litscout.models.config import NewsreaderConfig
from litscout.observability.logging import configure_logging
from litscout.orchestration.context import NewsreaderContext
from litscout.orchestration.newsreader import Newsreader
from litscout.services.config_manager import ConfigManager, ConfigValidationError

configure_logging(level="WARNING", json_output=False)
logger = structlog.get_logger()

F = TypeVar("F", bound=Callable)
T = TypeVar("T")


def load_config(config_path: Optional[Path] = None) -> NewsreaderConfig:
    """Load and validate configuration, then apply its logging settings.

    Args:
        config_path: Path to configuration file, or None for the default.

    Returns:
        Validated NewsreaderConfig.

    Raises:
        typer.Exit: If configuration is invalid.
    """
    manager = ConfigManager(config_path=str(config_path) if config_path else None)
    try:
        config = manager.load_config()
    except (FileNotFoundError, ConfigValidationError) as e:
        typer.secho(f"Configuration Error: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    configure_logging(level=config.logging.level, json_output=config.logging.json_output)
    return config


def run_with_newsreader(
    config_path: Optional[Path],
    operation: Callable[[Newsreader], Awaitable[T]],
) -> T:
    """Run one async facade operation inside a fresh context.

    Args:
        config_path: Configuration file path.
        operation: Coroutine function receiving the facade.

    Returns:
        Whatever the operation returns.
    """
    config = load_config(config_path)

    async def _run() -> T:
        async with NewsreaderContext.from_config(config) as context:
            return await operation(Newsreader(context))

    return asyncio.run(_run())


def handle_errors(func: F) -> F:
    """Decorator for consistent error handling.

    Catches exceptions and displays user-friendly error messages.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except Exception as e:
            logger.exception("command_failed")
            typer.secho(f"Error: {e}", fg=typer.colors.RED)
            raise typer.Exit(code=1)

    return wrapper  # type: ignore[return-value]


def display_success(message: str) -> None:
    typer.secho(message, fg=typer.colors.GREEN)


def display_warning(message: str) -> None:
    typer.secho(message, fg=typer.colors.YELLOW)


def display_error(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED)


def display_info(message: str) -> None:
    typer.secho(message, fg=typer.colors.CYAN)


CONFIG_OPTION = typer.Option(
    None, "--config", "-c", help="Configuration file (default: config/newsreader.yaml)"
)
