from .config import ClassifierConfig
from .diff import (
    compare_models,
    classify_critical_changes,
    ComparisonResult,
    CriticalChangesReport,
    IfcElement,
)
from .versions import group_lineages, resolve_pair, resolve_sequence, VersionLineage, VersionSnapshot
from .schema import CRITICAL_ELEMENT_TYPES, CRITICAL_PROPERTY_NAMES

__all__ = [
    "ClassifierConfig",
    "compare_models",
    "classify_critical_changes",
    "ComparisonResult",
    "CriticalChangesReport",
    "IfcElement",
    "group_lineages",
    "resolve_pair",
    "resolve_sequence",
    "VersionLineage",
    "VersionSnapshot",
    "CRITICAL_ELEMENT_TYPES",
    "CRITICAL_PROPERTY_NAMES",
]
