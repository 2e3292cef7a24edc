from pathlib import Path

from loguru import logger

from .config import LoggingConfig

LOG_FILENAME = "assist_{time:YYYY-MM-DD}.log"
LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<7} | {name}:{function}:{line} | {message}"
LOG_RETENTION = "14 days"

LEVELS = {
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "error": "ERROR",
}


def configure_logging(config: LoggingConfig, log_dir: Path):
    """
    Sends log records to a daily log file, or nowhere when logging is disabled.

    Loguru's default stderr sink is always removed: the terminal belongs to the
    presentation layer.
    """
    logger.remove()
    if not config.enabled:
        return

    level = LEVELS.get(config.level, "INFO")
    log_dir.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_dir / LOG_FILENAME,
        level=level,
        format=LOG_FORMAT,
        rotation="00:00",
        retention=LOG_RETENTION,
        encoding="utf-8",
        backtrace=False,
        diagnose=False,
    )
    logger.info("Configured logging with level {}", level)
