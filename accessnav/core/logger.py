"""Logging infrastructure for AccessNav.

Handlers are installed once on the ``accessnav`` logger; modules log through
``logging.getLogger(__name__)`` and propagate to it.
"""

import logging
import logging.handlers
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Rotate at 10MB, keep five old files
MAX_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 5


def setup_logger(
    name: str, level: str = "INFO", log_dir: str = "./logs", file_logging: bool = False
) -> logging.Logger:
    """Attach a console handler, plus a rotating ``<log_dir>/<name>.log`` when
    ``file_logging`` is set. Calling again only changes the level.
    """
    if level.upper() not in LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of: {', '.join(LEVELS)}")

    logger = logging.getLogger(name)
    logger.setLevel(level.upper())
    if logger.handlers:
        return logger

    handlers = [logging.StreamHandler()]
    if file_logging:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                os.path.join(log_dir, f"{name}.log"),
                maxBytes=MAX_BYTES,
                backupCount=BACKUP_COUNT,
            )
        )

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def configure_logging(settings) -> logging.Logger:
    """Configure the package logger from application settings."""
    return setup_logger(
        "accessnav",
        level="DEBUG" if settings.debug else settings.log_level,
        log_dir=settings.log_dir,
        file_logging=settings.log_to_file,
    )
