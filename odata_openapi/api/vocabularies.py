"""
Closed table of the vocabulary terms the converter understands.

CSDL documents write annotations as "@<alias>.<Term>" where the alias is
declared by an $Include entry of $Reference, or as "@<Namespace>.<Term>" when
no alias is declared. A Vocabulary instance resolves both spellings for the
terms listed here; all other annotations are ignored.
"""

from typing import Any, Dict, List, Optional


VOCABULARY_TERMS: Dict[str, Dict[str, Any]] = {
    "Authorization": {
        "namespace": "Org.OData.Authorization.V1",
        "terms": ["Authorizations", "SecuritySchemes"],
    },
    "Capabilities": {
        "namespace": "Org.OData.Capabilities.V1",
        "terms": [
            "BatchSupport",
            "BatchSupported",
            "ChangeTracking",
            "CountRestrictions",
            "DeleteRestrictions",
            "ExpandRestrictions",
            "FilterRestrictions",
            "IndexableByKey",
            "InsertRestrictions",
            "KeyAsSegmentSupported",
            "NavigationRestrictions",
            "OperationRestrictions",
            "ReadRestrictions",
            "SearchRestrictions",
            "SelectSupport",
            "SkipSupported",
            "SortRestrictions",
            "TopSupported",
            "UpdateRestrictions",
        ],
    },
    "Core": {
        "namespace": "Org.OData.Core.V1",
        "terms": [
            "AcceptableMediaTypes",
            "Computed",
            "ComputedDefaultValue",
            "DefaultNamespace",
            "Description",
            "Example",
            "Immutable",
            "IsKey",
            "LongDescription",
            "OptimisticConcurrency",
            "OptionalParameter",
            "Permissions",
            "SchemaVersion",
        ],
    },
    "JSON": {
        "namespace": "Org.OData.JSON.V1",
        "terms": ["Schema"],
    },
    "Validation": {
        "namespace": "Org.OData.Validation.V1",
        "terms": ["AllowedValues", "Exclusive", "Maximum", "Minimum", "Pattern"],
    },
    "Common": {
        "namespace": "com.sap.vocabularies.Common.v1",
        "terms": ["FieldControl", "Label"],
    },
}


class Vocabulary:
    """Annotation keys for the known terms, honouring the document's aliases."""

    def __init__(self, aliases: Dict[str, str] = None):
        # aliases: namespace -> alias, taken from $Reference/$Include
        aliases = aliases or {}
        self._keys: Dict[str, Dict[str, List[str]]] = {}
        for vocab, entry in VOCABULARY_TERMS.items():
            namespace = entry["namespace"]
            prefixes = [aliases.get(namespace, vocab), namespace]
            if vocab not in prefixes:
                prefixes.append(vocab)
            self._keys[vocab] = {
                term: [f"@{prefix}.{term}" for prefix in dict.fromkeys(prefixes)]
                for term in entry["terms"]
            }

    def key(self, vocab: str, term: str) -> str:
        """Preferred annotation key for a term, e.g. "@Core.Description"."""
        return self._keys[vocab][term][0]

    def keys(self, vocab: str, term: str) -> List[str]:
        return self._keys[vocab][term]

    def value(self, element: Optional[Dict[str, Any]], vocab: str, term: str, default=None):
        """Annotation value of a term on an element, whichever spelling the document uses."""
        if not isinstance(element, dict):
            return default
        for key in self._keys[vocab][term]:
            if key in element:
                return element[key]
        return default

    def has(self, element: Optional[Dict[str, Any]], vocab: str, term: str) -> bool:
        if not isinstance(element, dict):
            return False
        return any(key in element for key in self._keys[vocab][term])

    def nested(self, element: Optional[Dict[str, Any]], vocab: str, term: str, inner_vocab: str, inner_term: str):
        """Annotation on an annotation, e.g. "@Validation.Maximum@Validation.Exclusive"."""
        if not isinstance(element, dict):
            return None
        for outer in self._keys[vocab][term]:
            for inner in self._keys[inner_vocab][inner_term]:
                key = outer + inner
                if key in element:
                    return element[key]
        return None
