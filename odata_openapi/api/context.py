"""Per-document conversion state."""

import copy
from typing import Any, Dict, Tuple

from .builders.config_builders import ConversionOptions
from .extractors.model_extractor import TypeRegistry
from .extractors.references import RequiredSchemas


def version_tuple(version: str) -> Tuple[int, ...]:
    """"4.01" -> (4, 1), "4.0" -> (4, 0)."""
    parts = []
    for part in str(version).split("."):
        digits = "".join(ch for ch in part if ch.isdigit())
        parts.append(int(digits) if digits else 0)
    return tuple(parts)


class ConversionContext:
    """
    Everything one conversion pass reads and accumulates.

    The input document is copied, so external annotations can be merged onto
    their targets without touching the caller's data. Nothing here is shared
    between documents.
    """

    def __init__(self, csdl: Dict[str, Any], options=None):
        self.options = ConversionOptions.from_mapping(options)
        self.csdl = copy.deepcopy(csdl)
        self.version = str(self.options.odata_version or self.csdl.get("$Version") or "4.01")

        self.registry = TypeRegistry(self.csdl)
        self.registry.apply_external_annotations()
        self.voc = self.registry.voc
        self.tracker = RequiredSchemas(self.registry)

        self.entity_container = self.registry.entity_container()
        self.key_as_segment = bool(
            self.voc.value(self.entity_container, "Capabilities", "KeyAsSegmentSupported")
        )
        self.max_levels = self.options.max_levels
        self.query_option_prefix = self.options.query_option_prefix
        # shared schemas that are emitted only when referenced
        self.inline_types = set()

    def version_above(self, version: str) -> bool:
        return version_tuple(self.version) > version_tuple(version)

    def version_below(self, version: str) -> bool:
        return version_tuple(self.version) < version_tuple(version)

    @property
    def count_property(self) -> str:
        """Name of the instance annotation carrying a collection count."""
        return "@count" if self.version_above("4.0") else "@odata.count"

    def lookup(self, qualified_name: str):
        return self.registry.lookup(qualified_name)

    def ref(self, type_name: str, suffix: str = "") -> Dict[str, str]:
        return self.tracker.ref(type_name, suffix)
