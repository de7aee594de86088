"""Type inheritance graph built with NetworkX."""

from typing import List

import networkx as nx

from ...errors import CyclicTypeError

STRUCTURED_KINDS = ("EntityType", "ComplexType")


def build_type_graph(registry) -> nx.DiGraph:
    """
    Build a DiGraph of structured types with an edge base -> derived.

    Nodes are namespace-qualified type names, carrying the type's kind and
    abstractness. Edges are added in document order so successor lists are
    stable between runs.
    """
    graph = nx.DiGraph()

    for namespace, name, declaration in registry.iter_types():
        if declaration.get("$Kind") in STRUCTURED_KINDS:
            graph.add_node(
                f"{namespace}.{name}",
                kind=declaration["$Kind"],
                abstract=bool(declaration.get("$Abstract")),
            )

    for namespace, name, declaration in registry.iter_types():
        base = declaration.get("$BaseType")
        if base and declaration.get("$Kind") in STRUCTURED_KINDS:
            graph.add_edge(registry.qualify(base), f"{namespace}.{name}")

    return graph


def check_acyclic(graph: nx.DiGraph) -> None:
    """Raise CyclicTypeError if some $BaseType chain loops back on itself."""
    try:
        cycle = nx.find_cycle(graph)
    except nx.NetworkXNoCycle:
        return

    names = [edge[0] for edge in cycle] + [cycle[0][0]]
    raise CyclicTypeError(
        f"Cycle detected in type inheritance graph: {' -> '.join(names)}",
        {"cycle": names},
    )


def derived_types(graph: nx.DiGraph, qualified_name: str) -> List[str]:
    """Direct subtypes of a type, in document order."""
    if qualified_name not in graph:
        return []
    return list(graph.successors(qualified_name))


def type_hierarchy(graph: nx.DiGraph, qualified_name: str) -> List[str]:
    """All transitive subtypes of a type, sorted by name."""
    if qualified_name not in graph:
        return []
    return sorted(nx.descendants(graph, qualified_name))
