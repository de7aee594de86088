"""Model lookups, type mapping and schema synthesis."""

from .model_extractor import TypeRegistry
from .references import (
    RequiredSchema,
    RequiredSchemas,
    schema_ref,
    response_ref,
    parameter_ref,
)
from .type_mapper import (
    map_primitive,
    path_value_prefix,
    path_value_suffix,
    is_string_type,
)
from .schema_extractor import synthesize_schema, literal_type

__all__ = [
    "TypeRegistry",
    "RequiredSchema",
    "RequiredSchemas",
    "schema_ref",
    "response_ref",
    "parameter_ref",
    "map_primitive",
    "path_value_prefix",
    "path_value_suffix",
    "is_string_type",
    "synthesize_schema",
    "literal_type",
]
