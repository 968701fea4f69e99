# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

#src/hostprep/logging/log.py

from __future__ import annotations

import logging
from pathlib import Path
import uuid

from hostprep.config import defaults


def init_logging(
    *,
    log_file: Path | str | None = None,
    name: str = "hostprep",
    verbose: bool = False,
) -> tuple[logging.Logger, str, Path]:
    """
    Initializes:
      - append-only transcript file (every command, stdout and stderr)
      - console handler for errors, or everything with --debug
      - returns run_id so observers can reuse it
    """
    run_id = str(uuid.uuid4())

    log_path = Path(log_file or defaults.LOG_FILE).expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    for h in list(logger.handlers):
        h.close()
    logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # File = FULL TRACE, appended across runs
    fh = logging.FileHandler(log_path, mode="a")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(formatter)

    # Console progress goes through ConsoleObserver; only errors surface here
    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG if verbose else logging.ERROR)
    ch.setFormatter(formatter)

    logger.addHandler(fh)
    logger.addHandler(ch)

    logger.info("=== hostprep run started ===")
    logger.info(f"run_id={run_id}")
    logger.info(f"log_file={log_path}")

    return logger, run_id, log_path
