"""Loguru helpers for consistent logging in CLI commands."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

_SINK_IDS: dict[str, int] = {}

STDERR_FORMAT = "<dim>{time:HH:mm:ss.SSS}</dim> | <level>{level: <8}</level> | <level>{message}</level>"


def get_log_dir() -> Path:
    return Path.home() / ".bitcoind-rpc" / "logs"


def ensure_rotating_log_file(name: str, level: str = "INFO") -> Path:
    """Ensure a rotating log sink for the given command name."""
    log_path = get_log_dir() / f"{name}.log"
    if name in _SINK_IDS:
        return log_path
    log_path.parent.mkdir(parents=True, exist_ok=True)
    sink_id = logger.add(
        str(log_path),
        level=level,
        rotation="10 MB",
        retention="14 days",
        enqueue=True,
        encoding="utf-8",
        backtrace=False,
        diagnose=False,
    )
    _SINK_IDS[name] = sink_id
    return log_path


def configure_cli_logging(*, logs: bool, debug: bool, command: str) -> None:
    """Enable package logs on stderr for --debug, to a rotating file for --logs."""
    if debug:
        logger.remove()
        logger.add(sys.stderr, level="DEBUG", format=STDERR_FORMAT)
        logger.enable("bitcoind_rpc")
        ensure_rotating_log_file(command, level="DEBUG")
    elif logs:
        logger.enable("bitcoind_rpc")
        ensure_rotating_log_file(command, level="INFO")
    else:
        logger.disable("bitcoind_rpc")
