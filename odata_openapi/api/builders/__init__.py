"""Builders for the parts of the OpenAPI document."""

from .config_builders import (
    ConversionOptions,
    load_config_file,
    to_openapi_options,
)
from .schema_builders import (
    build_schemas,
    require_all_types,
    openapi_extensions,
)
from .parameter_builders import component_parameters
from .response_builders import error_response, response
from .path_builders import get_paths
from .security_builders import security_schemes, security_requirements

__all__ = [
    "ConversionOptions",
    "load_config_file",
    "to_openapi_options",
    "build_schemas",
    "require_all_types",
    "openapi_extensions",
    "component_parameters",
    "error_response",
    "response",
    "get_paths",
    "security_schemes",
    "security_requirements",
]
