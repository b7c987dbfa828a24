"""Logging for oauth1flow.

Thin layer over the standard library: a ContextualLogger that carries
key/value dimensions and an optional message prefix, plus a configurator
that installs a single stream handler on the package root logger.

Usage:
    from oauth1flow.core.logging import logger

    flow_logger = logger.with_context(flow_id=str(flow_id))
    flow_logger.info("Temporary credentials received")
"""

import logging
import sys
from typing import Any, Dict, MutableMapping, Optional, Tuple

from oauth1flow.core.config import settings

ROOT_LOGGER_NAME = "oauth1flow"

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that appends dimensions to every record.

    Dimensions are also attached to the record as ``record.dimensions``
    so structured handlers can pick them up.
    """

    def __init__(
        self,
        logger: logging.Logger,
        dimensions: Optional[Dict[str, Any]] = None,
        prefix: str = "",
    ) -> None:
        """Wrap a logger with fixed dimensions and a message prefix."""
        super().__init__(logger, dict(dimensions or {}))
        self.dimensions: Dict[str, Any] = dict(dimensions or {})
        self.prefix = prefix

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping]:
        """Prefix the message and render dimensions after it."""
        extra = dict(kwargs.get("extra") or {})
        extra["dimensions"] = self.dimensions
        kwargs["extra"] = extra

        rendered = f"{self.prefix}{msg}"
        if self.dimensions:
            dims = " ".join(f"{k}={v}" for k, v in self.dimensions.items())
            rendered = f"{rendered} [{dims}]"
        return rendered, kwargs

    def with_context(self, **dimensions: Any) -> "ContextualLogger":
        """Return a new logger with additional dimensions."""
        merged = {**self.dimensions, **dimensions}
        return ContextualLogger(self.logger, merged, self.prefix)

    def with_prefix(self, prefix: str) -> "ContextualLogger":
        """Return a new logger that prepends ``prefix`` to every message."""
        return ContextualLogger(self.logger, self.dimensions, f"{self.prefix}{prefix}")


class LoggerConfigurator:
    """Builds ContextualLoggers under the package root logger."""

    _configured = False

    @classmethod
    def configure_root(cls, level: Optional[str] = None) -> logging.Logger:
        """Install the stream handler once and apply the configured level."""
        root = logging.getLogger(ROOT_LOGGER_NAME)
        if not cls._configured:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(logging.Formatter(_LOG_FORMAT))
            root.addHandler(handler)
            root.propagate = False
            cls._configured = True
        root.setLevel((level or settings.LOG_LEVEL).upper())
        return root

    @classmethod
    def configure_logger(
        cls,
        name: str,
        dimensions: Optional[Dict[str, Any]] = None,
    ) -> ContextualLogger:
        """Create a ContextualLogger for ``name`` with the given dimensions.

        Args:
            name: Logger name, normally a dotted module path under oauth1flow.
            dimensions: Key/value pairs rendered with every message.

        Returns:
            ContextualLogger bound to the named logger.
        """
        cls.configure_root()
        return ContextualLogger(logging.getLogger(name), dimensions)


logger = LoggerConfigurator.configure_logger(ROOT_LOGGER_NAME)
