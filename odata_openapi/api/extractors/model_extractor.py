"""
Read access to a CSDL JSON document.

TypeRegistry resolves qualified names (namespaces, schema aliases and
$Reference aliases), flattens inherited properties once per conversion pass,
computes key properties and indexes bound operations by binding type.
"""

from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..gen_logging import get_logger
from ..graph import build_type_graph, derived_types
from ..utils.naming import is_identifier, parse_qualified_name
from ..vocabularies import Vocabulary
from ...errors import CyclicTypeError

logger = get_logger(__name__)

STRUCTURED_KINDS = ("EntityType", "ComplexType")


class TypeRegistry:
    """Lookups over one CSDL document. The document must be a private copy."""

    def __init__(self, csdl: Dict[str, Any]):
        self.csdl = csdl
        # qualifier (namespace or alias) -> namespace
        self.namespaces: Dict[str, str] = {}
        # namespace -> URL of the document that defines it
        self.namespace_urls: Dict[str, str] = {}
        # namespace -> alias, for vocabulary resolution
        self.aliases: Dict[str, str] = {}

        self._properties: Dict[int, Tuple[Dict[str, Any], Dict[str, Any]]] = {}
        self._graph = None
        self._bound = None

        self._read_references()
        self._read_schemas()
        self.voc = Vocabulary(self.aliases)

    # ------------------------------------------------------------------
    # Namespaces

    def _read_references(self):
        for url, reference in (self.csdl.get("$Reference") or {}).items():
            for include in reference.get("$Include", []) or []:
                namespace = include.get("$Namespace")
                if not namespace:
                    continue
                alias = include.get("$Alias")
                self.namespaces[namespace] = namespace
                if alias:
                    self.namespaces[alias] = namespace
                    self.aliases[namespace] = alias
                self.namespace_urls[namespace] = url

    def _read_schemas(self):
        for namespace in self.schema_namespaces():
            schema = self.csdl[namespace]
            self.namespaces[namespace] = namespace
            alias = schema.get("$Alias")
            if alias:
                self.namespaces[alias] = namespace
            # Schemas present in the document are never external
            self.namespace_urls.pop(namespace, None)

    def schema_namespaces(self) -> List[str]:
        return [
            key for key, value in self.csdl.items()
            if is_identifier(key) and isinstance(value, dict)
        ]

    def namespace_of(self, qualifier: str) -> str:
        return self.namespaces.get(qualifier, qualifier)

    def qualify(self, qualified_name: str) -> str:
        """Namespace-qualified form of a possibly alias-qualified name."""
        parts = parse_qualified_name(qualified_name)
        return f"{self.namespace_of(parts.qualifier)}.{parts.name}"

    def namespace_url(self, namespace: str) -> str:
        """URL of an externally referenced namespace, empty for local ones."""
        return self.namespace_urls.get(namespace, "")

    def is_external(self, qualified_name: str) -> bool:
        parts = parse_qualified_name(qualified_name)
        return bool(self.namespace_url(self.namespace_of(parts.qualifier)))

    # ------------------------------------------------------------------
    # Lookups

    def lookup(self, qualified_name: str) -> Optional[Any]:
        """
        Return the model element for a qualified name, or None if unknown.

        Types and containers are dicts, actions and functions are lists of
        overloads.
        """
        parts = parse_qualified_name(qualified_name)
        schema = self.csdl.get(self.namespace_of(parts.qualifier))
        if not isinstance(schema, dict):
            return None
        return schema.get(parts.name)

    def iter_types(self) -> Iterator[Tuple[str, str, Dict[str, Any]]]:
        """Yield (namespace, name, declaration) for every declaration with a $Kind."""
        for namespace in self.schema_namespaces():
            for name, declaration in self.csdl[namespace].items():
                if is_identifier(name) and isinstance(declaration, dict) and "$Kind" in declaration:
                    yield namespace, name, declaration

    def container_name(self) -> Optional[str]:
        return self.csdl.get("$EntityContainer")

    def entity_container(self) -> Optional[Dict[str, Any]]:
        name = self.container_name()
        if not name:
            return None
        container = self.lookup(name)
        return container if isinstance(container, dict) else None

    def container_schema(self) -> Dict[str, Any]:
        """The schema that declares the entity container, or {}."""
        name = self.container_name()
        if not name:
            return {}
        parts = parse_qualified_name(name)
        return self.csdl.get(self.namespace_of(parts.qualifier)) or {}

    # ------------------------------------------------------------------
    # Structured types

    def own_properties(self, type_decl: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        if not type_decl:
            return {}
        return {
            name: value for name, value in type_decl.items()
            if is_identifier(name) and isinstance(value, dict)
        }

    def base_chain(self, type_decl: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Return [root ancestor, ..., type_decl]. Raises CyclicTypeError on loops."""
        chain = []
        visiting = set()
        names = []
        current = type_decl
        while current is not None:
            if id(current) in visiting:
                raise CyclicTypeError(
                    f"Cycle detected in type inheritance graph: {' -> '.join(names)}",
                    {"cycle": names},
                )
            visiting.add(id(current))
            chain.append(current)
            base_name = current.get("$BaseType")
            if not base_name:
                break
            names.append(self.qualify(base_name))
            base = self.lookup(base_name)
            if base is None:
                logger.warning(f"  [WARN] Unknown base type {base_name}")
            current = base if isinstance(base, dict) else None
        chain.reverse()
        return chain

    def flatten_properties(self, type_decl: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """
        All properties of a structured type along its inheritance chain.

        Base properties come first, own properties overlay them. The result is
        cached for the lifetime of the registry and must not be mutated.
        """
        if not type_decl:
            return {}
        cached = self._properties.get(id(type_decl))
        if cached is not None:
            return cached[1]

        properties = {}
        for declaration in self.base_chain(type_decl):
            properties.update(self.own_properties(declaration))

        # keep the declaration alive so its id() stays unique
        self._properties[id(type_decl)] = (type_decl, properties)
        return properties

    def key_map(self, type_decl: Optional[Dict[str, Any]]) -> Dict[str, str]:
        """Key name -> property path, from $Key and from @Core.IsKey properties."""
        if not type_decl:
            return {}
        declared = []
        for declaration in reversed(self.base_chain(type_decl)):
            if "$Key" in declaration:
                declared = declaration["$Key"] or []
                break

        keys = {}
        for item in declared:
            if isinstance(item, str):
                keys[item] = item
            elif isinstance(item, dict):
                for alias, path in item.items():
                    keys[alias] = path

        for name, prop in self.flatten_properties(type_decl).items():
            if self.voc.value(prop, "Core", "IsKey") and name not in keys:
                keys[name] = name
        return keys

    def key_properties(self, type_decl: Optional[Dict[str, Any]]) -> List[str]:
        return list(self.key_map(type_decl))

    def resolve_property_path(self, type_decl: Optional[Dict[str, Any]], path: str) -> Optional[Dict[str, Any]]:
        """Follow a "/"-separated property path through structured types."""
        current = type_decl
        prop = None
        for segment in path.split("/"):
            prop = self.flatten_properties(current).get(segment)
            if prop is None:
                return None
            current = self.lookup(prop["$Type"]) if prop.get("$Type") and not prop["$Type"].startswith("Edm.") else None
        return prop

    @property
    def type_graph(self):
        if self._graph is None:
            self._graph = build_type_graph(self)
        return self._graph

    def derived_types(self, qualified_name: str) -> List[str]:
        return derived_types(self.type_graph, self.qualify(qualified_name))

    # ------------------------------------------------------------------
    # Operations

    def bound_overloads(self, binding_type: str, collection: bool = False) -> List[Tuple[str, Dict[str, Any]]]:
        """(qualified operation name, overload) pairs bound to a type or a collection of it."""
        if self._bound is None:
            self._bound = {}
            for namespace in self.schema_namespaces():
                for name, value in self.csdl[namespace].items():
                    if not is_identifier(name) or not isinstance(value, list):
                        continue
                    for overload in value:
                        if not isinstance(overload, dict) or not overload.get("$IsBound"):
                            continue
                        parameters = overload.get("$Parameter") or []
                        if not parameters:
                            continue
                        binding = parameters[0]
                        key = self.qualify(binding.get("$Type", "Edm.String"))
                        if binding.get("$Collection"):
                            key += "-c"
                        self._bound.setdefault(key, []).append((f"{namespace}.{name}", overload))

        key = self.qualify(binding_type) + ("-c" if collection else "")
        return self._bound.get(key, [])

    # ------------------------------------------------------------------
    # External annotations

    def apply_external_annotations(self):
        """
        Copy annotations from the schemas' $Annotations blocks onto their targets.

        Annotations written inline on the target win over external ones.
        """
        for namespace in self.schema_namespaces():
            for target, annotations in (self.csdl[namespace].get("$Annotations") or {}).items():
                elements = self._annotation_targets(target)
                if not elements:
                    logger.debug(f"  [SKIP] Unknown annotation target {target}")
                    continue
                for element in elements:
                    for term, value in annotations.items():
                        element.setdefault(term, value)

    def _annotation_targets(self, target: str) -> List[Dict[str, Any]]:
        segments = target.split("/")
        head = segments[0]
        if "(" in head:
            # Overload-specific targets are applied to every overload
            head = head[:head.index("(")]
        element = self.lookup(head)

        for segment in segments[1:]:
            if not isinstance(element, dict):
                return []
            element = element.get(segment)

        if isinstance(element, dict):
            return [element]
        if isinstance(element, list):
            return [overload for overload in element if isinstance(overload, dict)]
        return []
