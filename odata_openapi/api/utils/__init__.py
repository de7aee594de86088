"""Name and path utilities."""

from .naming import (
    QualifiedName,
    parse_qualified_name,
    is_identifier,
    resolve_namespace_alias,
    namespace_qualified_name,
    split_name,
    enum_member,
    kebab_case,
)
from .paths import (
    navigation_property_path,
    property_path,
    navigation_paths,
    navigation_path_map,
    primitive_paths,
    key_parameters,
    path_with_keys,
)

__all__ = [
    "QualifiedName",
    "parse_qualified_name",
    "is_identifier",
    "resolve_namespace_alias",
    "namespace_qualified_name",
    "split_name",
    "enum_member",
    "kebab_case",
    "navigation_property_path",
    "property_path",
    "navigation_paths",
    "navigation_path_map",
    "primitive_paths",
    "key_parameters",
    "path_with_keys",
]
