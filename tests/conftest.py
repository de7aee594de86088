"""
Pytest configuration and shared fixtures for the odata-openapi test suite.
"""

import copy
import json
import shutil
import tempfile
from pathlib import Path

import pytest

from odata_openapi.api.context import ConversionContext
from odata_openapi.api.gen_logging import reset_gen_logging


BOOKSHOP_CSDL = {
    "$Version": "4.0",
    "$EntityContainer": "CatalogService.EntityContainer",
    "CatalogService": {
        "@Core.Description": "Bookshop catalog",
        "EntityContainer": {
            "$Kind": "EntityContainer",
            "Books": {
                "$Collection": True,
                "$Type": "CatalogService.Books",
                "$NavigationPropertyBinding": {"author": "Authors"},
            },
            "Authors": {
                "$Collection": True,
                "$Type": "CatalogService.Authors",
                "$NavigationPropertyBinding": {"books": "Books"},
            },
            "submitOrder": {"$Action": "CatalogService.submitOrder"},
        },
        "Books": {
            "$Kind": "EntityType",
            "$Key": ["ID"],
            "ID": {"$Type": "Edm.Int32", "$Nullable": False},
            "title": {},
            "stock": {"$Type": "Edm.Int32", "$Nullable": True},
            "price": {"$Type": "Edm.Decimal", "$Precision": 5, "$Scale": 2},
            "author": {
                "$Kind": "NavigationProperty",
                "$Type": "CatalogService.Authors",
                "$Partner": "books",
                "$Nullable": True,
            },
        },
        "Authors": {
            "$Kind": "EntityType",
            "$Key": ["ID"],
            "ID": {"$Type": "Edm.Int32", "$Nullable": False},
            "name": {"$MaxLength": 111},
            "books": {
                "$Kind": "NavigationProperty",
                "$Collection": True,
                "$Type": "CatalogService.Books",
                "$Partner": "author",
            },
        },
        "submitOrder": [
            {
                "$Kind": "Action",
                "$Parameter": [
                    {"$Name": "book", "$Type": "Edm.Int32"},
                    {"$Name": "quantity", "$Type": "Edm.Int32"},
                ],
                "$ReturnType": {"$Type": "Edm.Int32"},
            }
        ],
    },
}


# Orders with contained items, an abstract base type, a complex type,
# an enumeration and a bound function
ORDERS_CSDL = {
    "$Version": "4.01",
    "$EntityContainer": "OrderService.EntityContainer",
    "OrderService": {
        "EntityContainer": {
            "$Kind": "EntityContainer",
            "Orders": {"$Collection": True, "$Type": "OrderService.Orders"},
            "Settings": {"$Type": "OrderService.Settings"},
        },
        "Managed": {
            "$Kind": "EntityType",
            "$Abstract": True,
            "createdAt": {
                "$Type": "Edm.DateTimeOffset",
                "@Core.Computed": True,
            },
        },
        "Orders": {
            "$Kind": "EntityType",
            "$BaseType": "OrderService.Managed",
            "$Key": ["ID"],
            "ID": {"$Type": "Edm.Guid", "@Core.Computed": True},
            "status": {"$Type": "OrderService.Status"},
            "shipTo": {"$Type": "OrderService.Address", "$Nullable": True},
            "items": {
                "$Kind": "NavigationProperty",
                "$Collection": True,
                "$Type": "OrderService.OrderItems",
                "$ContainsTarget": True,
            },
        },
        "OrderItems": {
            "$Kind": "EntityType",
            "$Key": ["pos"],
            "pos": {"$Type": "Edm.Int32"},
            "quantity": {"$Type": "Edm.Int32", "@Core.Immutable": True},
        },
        "Settings": {
            "$Kind": "EntityType",
            "theme": {},
        },
        "Address": {
            "$Kind": "ComplexType",
            "street": {},
            "city": {},
        },
        "Status": {
            "$Kind": "EnumType",
            "open": 1,
            "closed": 2,
        },
        "total": [
            {
                "$Kind": "Function",
                "$IsBound": True,
                "$Parameter": [
                    {"$Name": "in", "$Type": "OrderService.Orders"},
                    {"$Name": "currency"},
                ],
                "$ReturnType": {"$Type": "Edm.Decimal", "$Scale": 2},
            }
        ],
    },
}


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def temp_output_dir():
    """Create a temporary directory for generated output."""
    temp_dir = tempfile.mkdtemp(prefix="odata_openapi_test_")
    yield Path(temp_dir)
    # Cleanup after test
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture(autouse=True)
def reset_converter_logging():
    """The CLI detaches the converter logger from the root logger; undo that for caplog."""
    yield
    reset_gen_logging()


@pytest.fixture
def bookshop_csdl():
    """Two entity sets linked by navigation bindings, plus an action import."""
    return copy.deepcopy(BOOKSHOP_CSDL)


@pytest.fixture
def orders_csdl():
    """Containment, inheritance, complex and enumeration types, a bound function."""
    return copy.deepcopy(ORDERS_CSDL)


@pytest.fixture
def make_context():
    """Factory fixture building a ConversionContext from a CSDL document."""
    def _make(csdl, options=None):
        return ConversionContext(csdl, options)
    return _make


@pytest.fixture
def write_csdl_file(temp_output_dir):
    """Factory fixture to write a CSDL document to a temporary JSON file."""
    def _write(csdl, filename: str = "service.json") -> Path:
        file_path = temp_output_dir / filename
        file_path.write_text(json.dumps(csdl))
        return file_path
    return _write


def collect_refs(node):
    """All $ref values anywhere in a document."""
    refs = []
    if isinstance(node, dict):
        for key, value in node.items():
            if key == "$ref" and isinstance(value, str):
                refs.append(value)
            else:
                refs.extend(collect_refs(value))
    elif isinstance(node, list):
        for item in node:
            refs.extend(collect_refs(item))
    return refs


@pytest.fixture
def refs_of():
    return collect_refs
