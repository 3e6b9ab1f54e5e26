"""
Critical change detection for structural elements (Layer 2)

Layer 1 (model_diff.py) answers "what changed?". This module answers
"which of those changes touch the load-bearing structure, and how badly?".

Rules:
- Only elements of a critical type (walls, columns, beams, slabs, footings,
  piles, roofs) are reported; everything else is left out of the report.
- REMOVED critical element -> HIGH (structural capacity is gone)
- ADDED critical element -> MEDIUM
- MODIFIED critical element -> HIGH if a critical property changed
  (load bearing, external, thickness/dimensions, material, structural type),
  otherwise LOW

The classifier is deterministic and never mutates the comparison result.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterable, List, Optional

from ..config import ClassifierConfig
from .model_diff import ChangeKind, ComparisonResult, ElementChange, PropertyChange

logger = logging.getLogger(__name__)


class Severity(Enum):
    """
    Review priority of a critical change.

    Ordered from most to least consequential.
    """
    HIGH = auto()
    MEDIUM = auto()
    LOW = auto()


# =============================================================================
# REPORT TYPES
# =============================================================================

@dataclass
class CriticalChange:
    """A change to a structurally critical element."""
    local_id: Optional[int]
    element_type: str
    change_kind: ChangeKind
    severity: Severity
    description: str
    external_id: Optional[str] = None
    property_changes: List[PropertyChange] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "local_id": self.local_id,
            "element_type": self.element_type,
            "external_id": self.external_id,
            "change_kind": self.change_kind.name,
            "severity": self.severity.name,
            "description": self.description,
            "property_changes": [c.to_dict() for c in self.property_changes],
        }


@dataclass
class CriticalChangesSummary:
    total_critical: int
    high_severity: int
    medium_severity: int
    low_severity: int


@dataclass
class CriticalChangesReport:
    """
    Critical changes found in one comparison.

    has_critical_changes is True iff critical_changes is non-empty.
    """
    has_critical_changes: bool
    critical_changes: List[CriticalChange]
    summary: CriticalChangesSummary

    def changes_by_severity(self, severity: Severity) -> List[CriticalChange]:
        """Filter changes by severity."""
        return [c for c in self.critical_changes if c.severity == severity]

    def changes_by_kind(self, change_kind: ChangeKind) -> List[CriticalChange]:
        """Filter changes by change kind."""
        return [c for c in self.critical_changes if c.change_kind == change_kind]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "has_critical_changes": self.has_critical_changes,
            "critical_changes": [c.to_dict() for c in self.critical_changes],
            "summary": {
                "total_critical": self.summary.total_critical,
                "high_severity": self.summary.high_severity,
                "medium_severity": self.summary.medium_severity,
                "low_severity": self.summary.low_severity,
            },
        }


# =============================================================================
# MATCHING
# =============================================================================

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def _normalize_token(value: str) -> str:
    return _NON_ALNUM.sub("", value.lower())


def _normalize_type(value: str) -> str:
    token = _normalize_token(value)
    if token.startswith("ifc"):
        token = token[3:]
    return token


def is_critical_element(
    element_type: str,
    critical_types: Optional[Iterable[str]] = None
) -> bool:
    """
    Check whether an element type is structurally critical.

    Case-insensitive; the "Ifc" prefix and separators are ignored, and
    subtypes match their base type ("IfcWallStandardCase" is a wall,
    "IfcCurtainWall" is not).

    Args:
        element_type: Element type tag, e.g. "IfcWall" or "Wall"
        critical_types: Critical types to match against (defaults to the built-in set)
    """
    if critical_types is None:
        critical_types = ClassifierConfig.default().critical_types

    normalized = _normalize_type(element_type or "")
    if not normalized:
        return False
    for critical_type in critical_types:
        token = _normalize_type(critical_type)
        if token and normalized.startswith(token):
            return True
    return False


def is_critical_property(
    property_name: str,
    critical_properties: Optional[Iterable[str]] = None
) -> bool:
    """
    Check whether a property name indicates structural significance.

    Matches when the normalized name contains a critical token, so
    "LoadBearing", "load_bearing" and "Pset_WallCommon.LoadBearing" all match
    "loadbearing".
    """
    if critical_properties is None:
        critical_properties = ClassifierConfig.default().critical_properties

    normalized = _normalize_token(str(property_name))
    for critical_property in critical_properties:
        token = _normalize_token(critical_property)
        if token and token in normalized:
            return True
    return False


# =============================================================================
# SEVERITY AND DESCRIPTION
# =============================================================================

_CHANGE_VERBS = {
    ChangeKind.ADDED: "added",
    ChangeKind.REMOVED: "removed",
    ChangeKind.MODIFIED: "modified",
}


def _determine_severity(change: ElementChange, config: ClassifierConfig) -> Severity:
    if change.change_kind == ChangeKind.REMOVED:
        return Severity.HIGH

    if change.change_kind == ChangeKind.ADDED:
        return Severity.MEDIUM

    has_critical_property_change = any(
        is_critical_property(c.property_name, config.critical_properties)
        for c in change.property_changes
    )
    return Severity.HIGH if has_critical_property_change else Severity.LOW


def _describe(change: ElementChange) -> str:
    identifier = change.external_id or f"#{change.local_id}"
    description = f"{change.element_type} element {_CHANGE_VERBS[change.change_kind]}: {identifier}"
    if change.change_kind == ChangeKind.MODIFIED:
        names = ", ".join(str(c.property_name) for c in change.property_changes)
        description += f" ({names})"
    return description


def _to_critical_change(change: ElementChange, config: ClassifierConfig) -> CriticalChange:
    return CriticalChange(
        local_id=change.local_id,
        element_type=change.element_type,
        change_kind=change.change_kind,
        severity=_determine_severity(change, config),
        description=_describe(change),
        external_id=change.external_id,
        property_changes=list(change.property_changes)
    )


# =============================================================================
# MAIN CLASSIFICATION FUNCTION
# =============================================================================

def classify_critical_changes(
    result: ComparisonResult,
    config: Optional[ClassifierConfig] = None
) -> CriticalChangesReport:
    """
    Extract and score the critical changes of a comparison.

    Walks added, removed and modified in that order and keeps only elements
    of a critical type. Non-critical elements never appear in the report.

    Args:
        result: ComparisonResult from compare_models
        config: Critical types and properties (defaults to the built-in sets)

    Returns:
        CriticalChangesReport

    Example:
        >>> report = classify_critical_changes(compare_models(old, new))
        >>> for change in report.changes_by_severity(Severity.HIGH):
        ...     print(change.description)
    """
    if config is None:
        config = ClassifierConfig.default()

    critical_changes: List[CriticalChange] = []
    for changes in (result.added, result.removed, result.modified):
        for change in changes:
            if is_critical_element(change.element_type, config.critical_types):
                critical_changes.append(_to_critical_change(change, config))

    summary = CriticalChangesSummary(
        total_critical=len(critical_changes),
        high_severity=sum(1 for c in critical_changes if c.severity == Severity.HIGH),
        medium_severity=sum(1 for c in critical_changes if c.severity == Severity.MEDIUM),
        low_severity=sum(1 for c in critical_changes if c.severity == Severity.LOW)
    )

    if critical_changes:
        logger.info(
            f"Critical changes detected: {summary.total_critical} "
            f"(high={summary.high_severity}, medium={summary.medium_severity}, "
            f"low={summary.low_severity})"
        )

    return CriticalChangesReport(
        has_critical_changes=len(critical_changes) > 0,
        critical_changes=critical_changes,
        summary=summary
    )


def get_high_severity_changes(
    result: ComparisonResult,
    config: Optional[ClassifierConfig] = None
) -> List[CriticalChange]:
    """
    Get only HIGH severity critical changes from a comparison.

    This is useful for alerts and notifications.
    """
    report = classify_critical_changes(result, config)
    return report.changes_by_severity(Severity.HIGH)
