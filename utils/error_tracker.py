"""Error types of the integrator and the global exception hook."""

from __future__ import annotations

import signal
import sys
import traceback
from typing import Callable, Optional

from .logger import Logger


class IntegrationError(Exception):
    """Base class for fatal errors that abort an integration run."""


class InputPathError(IntegrationError):
    """Raised when an input directory or file is missing or unreadable."""


class MeshWriteError(IntegrationError):
    """Raised when the output mesh cannot be written."""


class PoseParseError(IntegrationError):
    """Raised when a pose file does not hold 16 numeric values."""


class FrameCountMismatchError(IntegrationError):
    """Raised when cloud and pose counts differ."""


class ErrorTracker:
    """Installable global exception hook that logs uncaught errors."""

    logger = Logger.get_logger("errors")
    _installed = False
    _orig_hook: Optional[Callable[..., None]] = None

    @classmethod
    def install_excepthook(cls) -> None:
        """Route unhandled exceptions through the project logger."""
        if cls._installed:
            return

        cls._orig_hook = sys.excepthook

        def _hook(exc_type, exc, tb) -> None:
            message = "".join(traceback.format_exception(exc_type, exc, tb))
            cls.logger.error(f"Unhandled exception:\n{message}")
            if cls._orig_hook:
                cls._orig_hook(exc_type, exc, tb)

        sys.excepthook = _hook
        cls._installed = True
        cls.logger.debug("Global exception hook installed")

    @classmethod
    def install_signal_handlers(cls) -> None:
        """Abort the run on SIGINT or SIGTERM."""

        def _handler(signum, frame) -> None:
            cls.logger.info(f"Received signal {signum}")
            raise SystemExit(1)

        signal.signal(signal.SIGINT, _handler)
        signal.signal(signal.SIGTERM, _handler)

