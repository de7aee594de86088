"""
Work-list of component schemas referenced while building paths and schemas.

Every $ref to a model type goes through RequiredSchemas.ref(), which records
the (namespace, name, suffix) triple the first time it is seen. The document
assembler drains the list until no new triples appear, so only reachable
schemas are emitted and each exactly once.
"""

from collections import namedtuple
from typing import Any, Dict, Iterator

from ..utils.naming import parse_qualified_name

SCHEMA_PREFIX = "#/components/schemas/"

RequiredSchema = namedtuple("RequiredSchema", ["namespace", "name", "suffix"])


def schema_ref(name: str) -> Dict[str, str]:
    """Reference to a schema that is not tracked (count, error, geoPoint, ...)."""
    return {"$ref": SCHEMA_PREFIX + name}


def response_ref(name: str) -> Dict[str, str]:
    return {"$ref": "#/components/responses/" + name}


def parameter_ref(name: str) -> Dict[str, str]:
    return {"$ref": "#/components/parameters/" + name}


class RequiredSchemas:
    """Seen-set plus ordered work-list of schema triples."""

    def __init__(self, registry):
        self.registry = registry
        self.used = set()
        self.entries = []

    def request_reference(self, namespace: str, name: str, suffix: str = "") -> Dict[str, str]:
        key = f"{namespace}.{name}{suffix}"
        if key not in self.used:
            self.used.add(key)
            self.entries.append(RequiredSchema(namespace, name, suffix))
        return {"$ref": SCHEMA_PREFIX + key}

    def ref(self, type_name: str, suffix: str = "") -> Dict[str, str]:
        """
        Reference to the schema of a model type.

        Alias qualifiers are replaced by namespaces. Types of externally
        referenced documents point into that document's OpenAPI rendition
        and are not tracked.
        """
        parts = parse_qualified_name(type_name)
        namespace = self.registry.namespace_of(parts.qualifier)
        url = self.registry.namespace_url(namespace)
        if url:
            if url.endswith(".xml"):
                url = url[:-len(".xml")] + ".openapi3.json"
            return {"$ref": f"{url}{SCHEMA_PREFIX}{namespace}.{parts.name}{suffix}"}
        return self.request_reference(namespace, parts.name, suffix)

    def drain(self) -> Iterator[RequiredSchema]:
        """Yield entries in discovery order, including those added while draining."""
        index = 0
        while index < len(self.entries):
            yield self.entries[index]
            index += 1

    def __len__(self):
        return len(self.entries)

    def __contains__(self, key: Any) -> bool:
        return key in self.used
