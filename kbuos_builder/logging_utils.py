from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

DEFAULT_LOG_PATH = "build/kbuos-build.log"
FALLBACK_LOG_NAME = "kbuos-build.log"


def configure_logging(
    log_path: Optional[str] = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
) -> Optional[str]:
    """Configure logging.

    Every command and decision of a build is recorded to the build log.

    Notes:
    - If the requested log path is not writable we fall back to a file in the
      current working directory.
    - log_path=None configures console output only; used for errors that must
      be reported before the build is allowed to touch the filesystem.

    Returns the actual file path being used (None for console only).
    """

    logger = logging.getLogger()
    logger.setLevel(level)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_kbuos_configured", False):
        return getattr(logger, "_kbuos_log_path", log_path)

    chosen_path: Optional[str] = None
    handlers: list[logging.Handler] = []

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    if log_path is not None:
        file_handler: logging.Handler
        try:
            Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path)
            chosen_path = log_path
        except OSError:
            fallback = str(Path.cwd() / FALLBACK_LOG_NAME)
            file_handler = logging.FileHandler(fallback)
            chosen_path = fallback
        file_handler.setFormatter(fmt)
        handlers.append(file_handler)

    if also_console or not handlers:
        console = logging.StreamHandler()
        console.setFormatter(fmt)
        handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_kbuos_configured", True)
    setattr(logger, "_kbuos_log_path", chosen_path)

    if chosen_path is not None:
        logging.getLogger(__name__).info(
            "Logging initialized (requested=%s, actual=%s)", log_path, chosen_path
        )
    return chosen_path
