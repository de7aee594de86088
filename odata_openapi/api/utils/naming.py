"""Qualified-name parsing and identifier helpers for CSDL documents."""

import re
from collections import namedtuple
from typing import Dict

from ...errors import InvalidNameError


QualifiedName = namedtuple("QualifiedName", ["qualifier", "name"])


def parse_qualified_name(qualified_name: str) -> QualifiedName:
    """
    Split a qualified name on its last dot.

    "CatalogService.Books" -> QualifiedName("CatalogService", "Books")

    Raises InvalidNameError when there is no qualifier in front of the dot.
    """
    pos = qualified_name.rfind(".") if isinstance(qualified_name, str) else -1
    if pos <= 0:
        raise InvalidNameError(
            f"Invalid qualified name {qualified_name!r}",
            {"name": qualified_name},
        )
    return QualifiedName(qualified_name[:pos], qualified_name[pos + 1:])


def is_identifier(key: str) -> bool:
    """An identifier does not start with $ and does not contain @."""
    return not key.startswith("$") and "@" not in key


def resolve_namespace_alias(alias: str, alias_map: Dict[str, str]) -> str:
    return alias_map.get(alias, alias)


def namespace_qualified_name(qualified_name: str, alias_map: Dict[str, str]) -> str:
    """Replace an alias qualifier with the namespace it stands for."""
    parts = parse_qualified_name(qualified_name)
    return f"{resolve_namespace_alias(parts.qualifier, alias_map)}.{parts.name}"


def split_name(name: str) -> str:
    """
    Turn a camel-cased name into lower-case words.

    "OrderItems" -> "order items", "BookID" -> "book id"
    """
    words = re.sub(r"(?<!^)(?=[A-Z])", " ", name).lower()
    return re.sub(r" i d\b", " id", words)


def enum_member(value) -> str:
    """Return the member name of an enumeration value written as "Member" or "Ns.Enum/Member"."""
    if isinstance(value, dict):
        value = value.get("$EnumMember", "")
    if not isinstance(value, str):
        return ""
    return value.rsplit("/", 1)[-1]


def kebab_case(name: str) -> str:
    """"CatalogService" -> "catalog-service"."""
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "-", name).lower()
