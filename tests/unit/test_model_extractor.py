"""
Unit tests for the TypeRegistry: name resolution, inheritance, keys,
bound operations and external annotations.
"""

import copy

import pytest

from odata_openapi.api.extractors.model_extractor import TypeRegistry
from odata_openapi.errors import CyclicTypeError


CSDL = {
    "$Version": "4.01",
    "$Reference": {
        "https://example.com/common.xml": {
            "$Include": [{"$Namespace": "com.example.Common", "$Alias": "Common"}],
        },
    },
    "Sales": {
        "$Alias": "S",
        "Base": {
            "$Kind": "EntityType",
            "$Key": ["ID"],
            "ID": {"$Type": "Edm.Int32"},
            "name": {},
        },
        "Derived": {
            "$Kind": "EntityType",
            "$BaseType": "S.Base",
            "name": {"$MaxLength": 20},
            "extra": {"$Type": "Edm.Boolean"},
        },
        "Item": {
            "$Kind": "EntityType",
            "$Key": [{"pos": "info/pos"}],
            "info": {"$Type": "Sales.Info"},
            "code": {"@Core.IsKey": True},
        },
        "Info": {"$Kind": "ComplexType", "pos": {"$Type": "Edm.Int16"}},
        "approve": [
            {"$Kind": "Action", "$IsBound": True, "$Parameter": [{"$Name": "in", "$Type": "Sales.Base"}]},
            {"$Kind": "Action", "$IsBound": True,
             "$Parameter": [{"$Name": "in", "$Type": "S.Base", "$Collection": True}]},
        ],
        "$Annotations": {
            "S.Base/name": {"@Core.Description": "Name", "@Core.Immutable": True},
            "Sales.Derived": {"@Core.Description": "Derived type"},
            "Sales.Nowhere": {"@Core.Description": "ignored"},
        },
    },
}


@pytest.fixture
def registry():
    return TypeRegistry(copy.deepcopy(CSDL))


class TestNameResolution:
    """Test namespaces, schema aliases and reference aliases."""

    def test_schema_alias(self, registry):
        assert registry.qualify("S.Base") == "Sales.Base"
        assert registry.lookup("S.Base") is registry.lookup("Sales.Base")

    def test_reference_alias_is_external(self, registry):
        assert registry.namespace_of("Common") == "com.example.Common"
        assert registry.is_external("Common.Label")
        assert not registry.is_external("Sales.Base")

    def test_unknown_name(self, registry):
        assert registry.lookup("Sales.Nothing") is None
        assert registry.lookup("Other.Nothing") is None

    def test_iter_types_skips_keywords(self, registry):
        names = [name for _, name, _ in registry.iter_types()]
        assert names == ["Base", "Derived", "Item", "Info"]


class TestInheritance:
    """Test flattening along the base type chain."""

    def test_flatten_base_first(self, registry):
        properties = registry.flatten_properties(registry.lookup("Sales.Derived"))
        assert list(properties) == ["ID", "name", "extra"]
        assert properties["name"] == {"$MaxLength": 20}

    def test_flatten_is_cached(self, registry):
        derived = registry.lookup("Sales.Derived")
        assert registry.flatten_properties(derived) is registry.flatten_properties(derived)

    def test_key_inherited(self, registry):
        assert registry.key_properties(registry.lookup("Sales.Derived")) == ["ID"]

    def test_cyclic_base_types(self):
        csdl = {
            "N": {
                "A": {"$Kind": "ComplexType", "$BaseType": "N.B"},
                "B": {"$Kind": "ComplexType", "$BaseType": "N.A"},
            }
        }
        registry = TypeRegistry(csdl)
        with pytest.raises(CyclicTypeError):
            registry.flatten_properties(registry.lookup("N.A"))

    def test_derived_types(self, registry):
        assert registry.derived_types("S.Base") == ["Sales.Derived"]
        assert registry.derived_types("Sales.Derived") == []


class TestKeys:
    """Test key aliases and IsKey annotations."""

    def test_key_alias_and_is_key(self, registry):
        item = registry.lookup("Sales.Item")
        assert registry.key_map(item) == {"pos": "info/pos", "code": "code"}

    def test_resolve_property_path(self, registry):
        item = registry.lookup("Sales.Item")
        assert registry.resolve_property_path(item, "info/pos") == {"$Type": "Edm.Int16"}
        assert registry.resolve_property_path(item, "info/missing") is None


class TestBoundOperations:
    """Test the binding type index."""

    def test_bound_to_entity(self, registry):
        overloads = registry.bound_overloads("Sales.Base")
        assert len(overloads) == 1
        assert overloads[0][0] == "Sales.approve"

    def test_bound_to_collection_via_alias(self, registry):
        overloads = registry.bound_overloads("S.Base", collection=True)
        assert len(overloads) == 1
        assert overloads[0][1]["$Parameter"][0]["$Collection"] is True


class TestExternalAnnotations:
    """Test merging of $Annotations onto their targets."""

    def test_annotations_are_merged(self, registry):
        registry.apply_external_annotations()
        assert registry.lookup("Sales.Base")["name"]["@Core.Immutable"] is True
        assert registry.lookup("Sales.Derived")["@Core.Description"] == "Derived type"

    def test_inline_annotation_wins(self):
        csdl = {
            "N": {
                "T": {"$Kind": "ComplexType", "p": {"@Core.Description": "inline"}},
                "$Annotations": {"N.T/p": {"@Core.Description": "external"}},
            }
        }
        registry = TypeRegistry(csdl)
        registry.apply_external_annotations()
        assert registry.lookup("N.T")["p"]["@Core.Description"] == "inline"
