"""
@file logging.py
@brief Centralized logging configuration
@details
Configures application logging with support for file and stdout output.
The analysis core reports diagnostics through stbg.core.events, which
forwards to the "stbg.events" logger configured here.

@author STBG Project
@date 2026-10-18
@version 1.0
@license AGPL-3.0
"""

import logging
import os
import sys


def _resolve_log_dir():
    """
    @brief Pick a writable log directory or None
    @details
    LOG_DIR wins when set; otherwise a local logs/ directory next to the
    package is created on demand.
    """
    log_dir = os.getenv("LOG_DIR")
    if log_dir:
        return log_dir

    base_dir = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
    log_dir = os.path.join(base_dir, "logs")
    try:
        os.makedirs(log_dir, exist_ok=True)
    except (OSError, PermissionError):
        return None
    return log_dir if os.access(log_dir, os.W_OK) else None


def setup_logging() -> logging.Logger:
    """
    @brief Configure and return the application logger
    @details
    Sets up logging based on environment variables:
    - LOG_OUTPUT: 'stdout', 'file' (logs/stbg.log) or 'both' (default 'stdout')
    - LOG_LEVEL: standard level name (default INFO)
    """
    log_output = os.getenv("LOG_OUTPUT", "stdout").lower()
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    handlers = []

    if log_output in ("stdout", "both"):
        handlers.append(logging.StreamHandler(sys.stdout))

    if log_output in ("file", "both"):
        log_dir = _resolve_log_dir()
        if log_dir:
            try:
                handlers.append(logging.FileHandler(os.path.join(log_dir, "stbg.log")))
            except (OSError, PermissionError):
                pass

    # Safety net
    if not handlers:
        handlers.append(logging.StreamHandler(sys.stdout))

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers
    )

    return logging.getLogger("stbg")
