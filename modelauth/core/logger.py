import sys
from pathlib import Path

from loguru import logger

from modelauth.config.schema import Config


def configure_logger(config: Config) -> None:
    """Configure loguru logger based on settings."""
    logger.remove()  # Remove default handler

    if not config.logging.enabled:
        return

    # Console (stderr)
    logger.add(sys.stderr, level=config.logging.level)

    # File
    if config.logging.file_enabled:
        path = Path(config.logging.file_path).expanduser()
        logger.add(
            path,
            rotation=config.logging.rotation,
            retention=config.logging.retention,
            level=config.logging.level,
            enqueue=True  # Async safe
        )
