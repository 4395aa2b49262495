from __future__ import annotations

"""Logging utilities.

Set up a consistent logging configuration to both console and a file
in the `logs/` directory, configuring the root logger once per run.

Every module logs under the `sdstructure` namespace; `configure_logging`
sets that namespace's level independently so `--debug` shows sector and
composition details without turning on DEBUG for third-party libraries.
"""

import logging
from pathlib import Path

PACKAGE_LOGGER = "sdstructure"
LOG_FILE_NAME = "run.log"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(log_dir: Path, debug: bool = False) -> logging.Logger:
    """Configure root logging for the application and return the package logger.

    - Creates the log directory if missing
    - Streams logs to both stderr and `logs/run.log`
    - Root stays at INFO; the `sdstructure` logger drops to DEBUG if `debug=True`
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_dir / LOG_FILE_NAME, mode="w", encoding="utf-8"),
        ],
    )
    package_log = logging.getLogger(PACKAGE_LOGGER)
    package_log.setLevel(logging.DEBUG if debug else logging.INFO)
    return package_log
