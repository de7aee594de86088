"""Type inheritance graph and cycle detection."""

from .type_graph import (
    build_type_graph,
    check_acyclic,
    derived_types,
    type_hierarchy,
)

__all__ = [
    "build_type_graph",
    "check_acyclic",
    "derived_types",
    "type_hierarchy",
]
