# utils/logger.py
"""Project logging on top of loguru, plus tqdm progress and Open3D muting."""

from __future__ import annotations

import os
import sys
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, TypeVar, cast

from loguru import logger as _logger
from loguru._logger import Logger as LoguruLogger
from tqdm.auto import tqdm

T = TypeVar("T")


# ============================== CONFIG =======================================

MODULE_W = 8
LINE_W = 3


@dataclass(frozen=True)
class LoggingCfg:
    """Logging defaults shared by every module of the integrator."""

    level: str = os.environ.get("INTEGRATE_LOG_LEVEL", "INFO")
    json: bool = True
    file_sink: bool = os.environ.get("INTEGRATE_LOG_FILE", "1") != "0"
    log_dir: Path = Path(os.environ.get("INTEGRATE_LOG_DIR", ".logs"))
    log_format: str = (
        "<green>{time:MM-DD HH:mm:ss}</green>"
        "[<level>{level:.3}</level>]"
        f"[<cyan>{{extra[module]:<{MODULE_W}.{MODULE_W}}}</cyan>:"
        f"<cyan>{{line:>{LINE_W}}}</cyan>] "
        "<level>{message}</level>"
    )
    # only used when json=False
    log_file_format: str = (
        f"{{time:YYYY-MM-DD HH:mm:ss}}[{{level:.3}}]"
        f"[{{extra[module]:<{MODULE_W}.{MODULE_W}}}:{{line:>{LINE_W}}}] "
        "{message}"
    )
    progress_bar_format: str = (
        "{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]"
    )


LOGCFG = LoggingCfg()


# ============================== LOGGER =======================================


class Logger:
    """Single place where loguru sinks are attached."""

    _configured: bool = False
    _log_dir: Path = LOGCFG.log_dir
    _log_file: Optional[Path] = None
    _lock = threading.Lock()

    @staticmethod
    def _add_sinks(level: str, json_format: bool, file_sink: bool) -> None:
        _logger.add(
            sys.stderr,
            level=level,
            serialize=False,
            format=LOGCFG.log_format,
        )
        if not file_sink:
            Logger._log_file = None
            return
        os.makedirs(Logger._log_dir, exist_ok=True)
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        Logger._log_file = Logger._log_dir / f"integrate_{ts}.log.json"
        _logger.add(
            Logger._log_file,
            level=level,
            serialize=json_format,
            format=LOGCFG.log_file_format,
        )

    @staticmethod
    def _configure(
        level: str, json_format: bool, file_sink: bool, force: bool = False
    ) -> None:
        """Attach sinks once; ``force`` replaces the existing ones."""
        with Logger._lock:
            if Logger._configured and not force:
                return
            _logger.remove()
            Logger._add_sinks(level, json_format, file_sink)
            Logger._configured = True

    @staticmethod
    def configure(
        level: Optional[str] = None,
        log_dir: Optional[Path | str] = None,
        json_format: Optional[bool] = None,
        file_sink: Optional[bool] = None,
    ) -> None:
        """
        Reconfigure sinks, e.g. to switch to DEBUG for ``--verbose``.
        Loggers returned earlier by get_logger() follow the new sinks.
        """
        if log_dir is not None:
            Logger._log_dir = Path(log_dir)
        Logger._configure(
            level or LOGCFG.level,
            LOGCFG.json if json_format is None else bool(json_format),
            LOGCFG.file_sink if file_sink is None else bool(file_sink),
            force=True,
        )

    @staticmethod
    def get_logger(name: str) -> LoguruLogger:
        """Loguru logger bound to ``name`` (shown as extra[module])."""
        Logger._configure(LOGCFG.level, LOGCFG.json, LOGCFG.file_sink)
        return _logger.bind(module=name)

    @staticmethod
    def progress(
        iterable: Iterable[T],
        desc: Optional[str] = None,
        total: Optional[int] = None,
    ) -> Iterable[T]:
        """tqdm with the project bar style."""
        return cast(
            Iterable[T],
            tqdm(
                iterable,
                desc=desc,
                total=total,
                leave=False,
                bar_format=LOGCFG.progress_bar_format,
            ),
        )


# ============================== CONTEXTS =====================================


class SuppressO3DInfo:
    """Redirect fd 1/2 to /dev/null while Open3D prints from C++."""

    def __init__(self) -> None:
        self._old_stdout: Optional[int] = None
        self._old_stderr: Optional[int] = None
        self._devnull: Optional[int] = None

    def __enter__(self) -> "SuppressO3DInfo":
        sys.stdout.flush()
        sys.stderr.flush()
        self._old_stdout = os.dup(1)
        self._old_stderr = os.dup(2)
        self._devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(self._devnull, 1)
        os.dup2(self._devnull, 2)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._old_stdout is not None:
            os.dup2(self._old_stdout, 1)
            os.close(self._old_stdout)
        if self._old_stderr is not None:
            os.dup2(self._old_stderr, 2)
            os.close(self._old_stderr)
        if self._devnull is not None:
            os.close(self._devnull)
