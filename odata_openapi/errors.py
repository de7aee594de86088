"""
Error types raised during CSDL to OpenAPI conversion.

Only malformed input that cannot be degraded raises. Unknown types, unknown
primitive names and unknown authorization types are reported through the
logger and the conversion continues.
"""

from typing import Any, Dict


class OpenAPIConversionError(Exception):
    """Base class for all conversion failures."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(message)
        self.details = details or {}


class InvalidNameError(OpenAPIConversionError):
    """A qualified name has no namespace separator."""


class CyclicTypeError(OpenAPIConversionError):
    """A $BaseType chain refers back to itself."""


class ConfigurationError(OpenAPIConversionError):
    """Options or the configuration file could not be used."""


class UnsupportedProtocolError(OpenAPIConversionError):
    """A service is annotated with a protocol that has no OpenAPI rendition."""
