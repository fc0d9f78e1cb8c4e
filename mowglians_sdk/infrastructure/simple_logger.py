"""Standard-library logging adapter."""

import logging
from typing import Any

from ..ports.logger import LoggerPort


class SimpleLogger(LoggerPort):
    """Logger implementation using Python's standard logging.

    Keyword context is attached to each record through ``extra`` so that
    structured handlers can pick it up.
    """

    def __init__(self, name: str = "mowglians_sdk", level: int = logging.INFO):
        """Initialize the logger.

        Args:
            name: Logger name (default: "mowglians_sdk")
            level: Logging level (default: INFO)
        """
        self._logger = logging.getLogger(name)
        self._logger.setLevel(level)

        if not self._logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            handler.setFormatter(formatter)
            self._logger.addHandler(handler)

    @classmethod
    def from_level_name(cls, level_name: str, name: str = "mowglians_sdk") -> "SimpleLogger":
        """Create a logger from a level name such as "DEBUG"."""
        level = logging.getLevelName(level_name.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level_name}")
        return cls(name=name, level=level)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log a debug message."""
        self._logger.debug(message, extra=kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log an info message."""
        self._logger.info(message, extra=kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log a warning message."""
        self._logger.warning(message, extra=kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log an error message."""
        self._logger.error(message, extra=kwargs)

    def exception(self, message: str, exc_info: BaseException | None = None, **kwargs: Any) -> None:
        """Log an exception with traceback."""
        self._logger.exception(message, exc_info=exc_info or True, extra=kwargs)
