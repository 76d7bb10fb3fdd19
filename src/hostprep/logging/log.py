# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

#src/hostprep/logging/log.py

from __future__ import annotations

import logging
from pathlib import Path
from datetime import datetime, timezone
import uuid

from .redaction import RedactingFilter, SecretRedactor

def init_logging(
    *,
    base_dir: Path | None = None,
    name: str = "hostprep",
    verbose: bool = False,
    redactor: SecretRedactor | None = None,
) -> tuple[logging.Logger, str, Path]:
    """
    Initializes:
      - per-run log file with the full trace
      - console output at INFO (DEBUG with --debug)
      - returns run_id so observers can reuse it
    """
    run_id = str(uuid.uuid4())

    if base_dir is None:
        base_dir = Path.home() / ".hostprep" / "logs"
    base_dir = Path(base_dir).expanduser()
    base_dir.mkdir(parents=True, exist_ok=True)

    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    log_path = base_dir / f"{name}-{ts}-{run_id}.log"

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

    # File = FULL TRACE
    fh = logging.FileHandler(log_path)
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(formatter)

    # Console = INFO by default, DEBUG when --debug is passed
    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG if verbose else logging.INFO)
    ch.setFormatter(formatter)

    if redactor is not None:
        fh.addFilter(RedactingFilter(redactor))
        ch.addFilter(RedactingFilter(redactor))

    logger.addHandler(fh)
    logger.addHandler(ch)

    logger.info("=== hostprep run started ===")
    logger.info("run_id=%s", run_id)
    logger.info("log_file=%s", log_path)

    return logger, run_id, log_path
