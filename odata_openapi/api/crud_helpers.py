"""
CRUD convention helpers for entity sets, singletons and navigation targets.
Maps CRUD operations to HTTP methods, capability restrictions, status codes and summaries.
"""

from pluralizer import Pluralizer

from .utils.naming import enum_member, split_name

pluralizer = Pluralizer()

# Operation to HTTP method mapping
OPERATION_HTTP_METHOD = {
    "list": "get",
    "read": "get",
    "create": "post",
    "update": "patch",
    "delete": "delete",
}

# Operation to (Capabilities term, flag) gating it
OPERATION_RESTRICTION = {
    "list": ("ReadRestrictions", "Readable"),
    "read": ("ReadRestrictions", "Readable"),
    "create": ("InsertRestrictions", "Insertable"),
    "update": ("UpdateRestrictions", "Updatable"),
    "delete": ("DeleteRestrictions", "Deletable"),
}

# Operation to success status code mapping
OPERATION_STATUS_CODE = {
    "list": 200,
    "read": 200,
    "create": 201,
    "update": 204,
    "delete": 204,
}

OPERATION_RESPONSE_DESCRIPTION = {
    "list": "Retrieved entities",
    "read": "Retrieved entity",
    "create": "Created entity",
    "update": "Success",
    "delete": "Success",
}

OPERATION_SUMMARY = {
    "list": "Retrieves a list of {plural}.",
    "read": "Retrieves a single {singular}.",
    "create": "Creates a single {singular}.",
    "update": "Changes a single {singular}.",
    "delete": "Deletes a single {singular}.",
}


def get_operation_http_method(operation, restriction=None):
    """HTTP method of an operation; updates honour UpdateRestrictions/UpdateMethod."""
    if operation == "update" and restriction and enum_member(restriction.get("UpdateMethod")).upper() == "PUT":
        return "put"
    return OPERATION_HTTP_METHOD[operation]


def get_operation_status_code(operation):
    return OPERATION_STATUS_CODE[operation]


def get_response_description(operation):
    return OPERATION_RESPONSE_DESCRIPTION[operation]


def resource_words(name):
    """
    Singular and plural words of a resource name.

    "OrderItems" -> ("order item", "order items")
    """
    words = pluralizer.singular(split_name(name))
    return words, pluralizer.pluralize(words)


def get_operation_summary(operation, name):
    singular, plural = resource_words(name)
    return OPERATION_SUMMARY[operation].format(singular=singular, plural=plural)


def is_operation_allowed(operation, restriction):
    """Operations are allowed unless the restriction flag is explicitly false."""
    _, flag = OPERATION_RESTRICTION[operation]
    return (restriction or {}).get(flag) is not False
