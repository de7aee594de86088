"""
Logging for the CSDL to OpenAPI conversion.

Converter modules log through a child of the "odata.openapi" logger:

    from odata_openapi.api.gen_logging import get_logger
    logger = get_logger(__name__)

Nothing is printed until the CLI calls configure_gen_logging(); library
callers see the records through their own root logger configuration.
"""

import logging
import sys
from typing import IO, Optional

_LOGGER_NAME = "odata.openapi"


def get_logger(name: str = None) -> logging.Logger:
    """
    Return a child logger under the odata.openapi hierarchy.

    "odata_openapi.api.builders.path_builders" -> "odata.openapi.path_builders"
    """
    if name is None or name == _LOGGER_NAME:
        return logging.getLogger(_LOGGER_NAME)
    short = name.rsplit(".", 1)[-1]
    return logging.getLogger(f"{_LOGGER_NAME}.{short}")


def verbosity_level(verbose: bool = False, quiet: bool = False) -> int:
    """
    Log level for the CLI switches; verbose wins over quiet.

        --verbose / -v  -> DEBUG   (skipped elements, cycle cuts, every schema)
        (default)       -> INFO    (phases, path and schema counts)
        --quiet / -q    -> WARNING (unknown types, protocols, auth types)
    """
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_gen_logging(verbose: bool = False, quiet: bool = False, stream: Optional[IO[str]] = None) -> logging.Logger:
    """
    Send odata.openapi records to one handler on stderr (or the given stream).

    Calling it again re-targets the existing handler instead of adding a
    second one, so each CLI invocation gets its own level and stream.
    """
    level = verbosity_level(verbose, quiet)
    stream = stream or sys.stderr

    root_logger = logging.getLogger(_LOGGER_NAME)
    root_logger.setLevel(level)
    root_logger.propagate = False

    handler = next((h for h in root_logger.handlers if isinstance(h, _ConversionHandler)), None)
    if handler is None:
        handler = _ConversionHandler(stream)
        handler.setFormatter(_GenFormatter())
        root_logger.addHandler(handler)
    else:
        handler.setStream(stream)
    handler.setLevel(level)
    return root_logger


def reset_gen_logging() -> None:
    """Undo configure_gen_logging(): drop the handler and propagate again."""
    root_logger = logging.getLogger(_LOGGER_NAME)
    for handler in [h for h in root_logger.handlers if isinstance(h, _ConversionHandler)]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.NOTSET)
    root_logger.propagate = True


class _ConversionHandler(logging.StreamHandler):
    """Stream handler owned by configure_gen_logging()."""


class _GenFormatter(logging.Formatter):
    """Messages carry their own [TAG]; untagged warnings get one."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.levelno >= logging.WARNING and not message.lstrip().startswith("["):
            return f"[{record.levelname}] {message}"
        return message
