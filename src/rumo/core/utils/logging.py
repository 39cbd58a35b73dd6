"""
loguru setup for the CLI and embedding applications.

Library modules only call ``logger``; sinks are installed here, once, by
whoever owns the process.
"""

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = "<level>[{level.name}]</level> {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{line} | {message}"


def setup_logging(
    level: str = "WARNING",
    log_file: str | Path | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Replace loguru's sinks with stderr and, optionally, a rotating file.

    Args:
        level: Minimum level for both sinks (case-insensitive).
        log_file: File sink path; its parent directory is created.
        rotation: Size or age at which the file rotates.
        retention: How long rotated files are kept.
    """
    level = level.upper()
    logger.remove()
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(path, level=level, format=FILE_FORMAT, rotation=rotation, retention=retention)


def setup_logging_from_config(config) -> None:  # type: ignore[no-untyped-def]
    """Apply the ``logging`` section of a rumo Config.

    A bare file name in ``logging.file`` is placed under ``paths.log_dir``.
    """
    log_file = config.get("logging.file") or None
    if log_file and Path(log_file).name == log_file and config.get("paths.log_dir"):
        log_file = Path(config.get("paths.log_dir")) / log_file
    setup_logging(level=str(config.get("logging.level") or "WARNING"), log_file=log_file)
