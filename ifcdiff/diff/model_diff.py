"""
Model comparison engine for IFC element snapshots.

This module compares two parsed versions of a building model and answers
"what changed?":
- Matches elements across snapshots by a stable identity key (GlobalId,
  falling back to type + express id)
- Diffs property mappings with deep, kind-strict value equality
- Classifies every element as added, removed, modified or unchanged
- Aggregates counts overall and per element type

CORE PRINCIPLES:
1. Pure: no I/O, no caching, inputs are never mutated
2. Deterministic: output order follows input order
3. No renames: an element whose identity key changes is removed + added
4. Geometry is not compared, only properties
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .values import MISSING, values_equal

logger = logging.getLogger(__name__)


# =============================================================================
# ELEMENTS
# =============================================================================

@dataclass
class IfcElement:
    """
    One element of a model snapshot, as produced by the model parser.

    local_id (the IFC express id) is unique inside one snapshot but is
    re-assigned on every export, so it is only used for identity when the
    element carries no external_id (GlobalId).
    """
    local_id: Optional[int]
    element_type: str
    external_id: Optional[str] = None
    properties: Dict[str, Any] = field(default_factory=dict)
    name: Optional[str] = None


# Accepted record keys, first match wins
_LOCAL_ID_KEYS = ("local_id", "localId", "expressId", "express_id")
_TYPE_KEYS = ("element_type", "elementType", "type")
_EXTERNAL_ID_KEYS = ("external_id", "externalId", "globalId", "global_id")


def _first_present(record: Mapping[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if key in record:
            return record[key]
    return None


def element_from_dict(record: Mapping[str, Any]) -> IfcElement:
    """
    Build an IfcElement from a plain dict record.

    Accepts snake_case, camelCase and the IFC viewer naming
    (expressId / type / globalId). Missing properties become an empty
    mapping and a missing element type becomes "".

    Args:
        record: Element record from the parsing collaborator

    Returns:
        IfcElement instance (the record itself is not modified)
    """
    element_type = _first_present(record, _TYPE_KEYS)
    properties = record.get("properties")
    return IfcElement(
        local_id=_first_present(record, _LOCAL_ID_KEYS),
        element_type=element_type if element_type is not None else "",
        external_id=_first_present(record, _EXTERNAL_ID_KEYS),
        properties=properties if properties is not None else {},
        name=record.get("name"),
    )


def _coerce_element(element: Union[IfcElement, Mapping[str, Any]]) -> IfcElement:
    if isinstance(element, IfcElement):
        return element
    return element_from_dict(element)


def identity_key(element: IfcElement) -> str:
    """
    Derive the cross-snapshot identity key of an element.

    Uses external_id (GlobalId) when present and non-empty, otherwise
    "<element_type>_<local_id>".
    """
    if element.external_id:
        return str(element.external_id)
    return f"{element.element_type}_{element.local_id}"


# =============================================================================
# PROPERTY DIFF
# =============================================================================

@dataclass
class PropertyChange:
    """
    A single property that differs between two versions of an element.

    old_value is MISSING when the property was added, new_value is MISSING
    when it was removed. None is a real value (JSON null).
    """
    property_name: str
    old_value: Any
    new_value: Any

    @property
    def is_addition(self) -> bool:
        return self.old_value is MISSING

    @property
    def is_removal(self) -> bool:
        return self.new_value is MISSING

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary; a MISSING side is left out."""
        data: Dict[str, Any] = {"property_name": self.property_name}
        if self.old_value is not MISSING:
            data["old_value"] = self.old_value
        if self.new_value is not MISSING:
            data["new_value"] = self.new_value
        return data


def diff_properties(
    old_props: Optional[Mapping[str, Any]],
    new_props: Optional[Mapping[str, Any]]
) -> List[PropertyChange]:
    """
    Compare two property mappings of the same element.

    Keys are visited in union order (old keys first, then keys only in new),
    so the output is stable for identical inputs. Keys present and equal on
    both sides are omitted.

    Args:
        old_props: Properties in the old snapshot (None treated as empty)
        new_props: Properties in the new snapshot (None treated as empty)

    Returns:
        List of PropertyChange, empty when nothing differs
    """
    old_props = old_props or {}
    new_props = new_props or {}

    all_keys = list(old_props.keys())
    all_keys.extend(key for key in new_props.keys() if key not in old_props)

    changes = []
    for key in all_keys:
        old_value = old_props.get(key, MISSING)
        new_value = new_props.get(key, MISSING)
        if not values_equal(old_value, new_value):
            changes.append(PropertyChange(
                property_name=key,
                old_value=old_value,
                new_value=new_value
            ))

    return changes


# =============================================================================
# ELEMENT MATCHING
# =============================================================================

@dataclass
class ElementMatch:
    """
    Three-way partition of two snapshots by identity key.

    pairs follow the order of the new snapshot, only_new likewise,
    only_old follows the order of the old snapshot.
    """
    pairs: List[Tuple[IfcElement, IfcElement]]
    only_old: List[IfcElement]
    only_new: List[IfcElement]


def _index_by_identity(elements: Iterable[IfcElement], label: str) -> Dict[str, IfcElement]:
    index: Dict[str, IfcElement] = {}
    for element in elements:
        if not element.element_type:
            logger.warning(
                f"Element {element.local_id} in {label} snapshot has no element type"
            )
        if not element.external_id:
            logger.debug(
                f"Element {element.element_type}#{element.local_id} has no external id, "
                f"using fallback identity key"
            )
        key = identity_key(element)
        if key in index:
            logger.warning(
                f"Duplicate identity key '{key}' in {label} snapshot, keeping the last element"
            )
        index[key] = element
    return index


def match_elements(
    old_elements: Iterable[Union[IfcElement, Mapping[str, Any]]],
    new_elements: Iterable[Union[IfcElement, Mapping[str, Any]]]
) -> ElementMatch:
    """
    Partition two element sets into matched pairs, old-only and new-only.

    One hash map per snapshot, so this is linear in the number of elements.
    Identity keys are assumed unique within a snapshot; on a collision the
    last element wins.

    Args:
        old_elements: Elements of the old snapshot
        new_elements: Elements of the new snapshot

    Returns:
        ElementMatch with pairs as (old, new) tuples
    """
    old_map = _index_by_identity((_coerce_element(e) for e in old_elements), "old")
    new_map = _index_by_identity((_coerce_element(e) for e in new_elements), "new")

    pairs = []
    only_new = []
    for key, new_element in new_map.items():
        old_element = old_map.get(key)
        if old_element is None:
            only_new.append(new_element)
        else:
            pairs.append((old_element, new_element))

    only_old = [element for key, element in old_map.items() if key not in new_map]

    return ElementMatch(pairs=pairs, only_old=only_old, only_new=only_new)


# =============================================================================
# COMPARISON RESULT
# =============================================================================

class ChangeKind(Enum):
    """What happened to an element between two snapshots."""
    ADDED = auto()     # Only in the new snapshot
    REMOVED = auto()   # Only in the old snapshot
    MODIFIED = auto()  # In both, with at least one property difference


@dataclass
class ElementChange:
    """
    A changed element.

    - ADDED: new_properties set, old_properties None
    - REMOVED: old_properties set, new_properties None
    - MODIFIED: both set, property_changes never empty
    """
    local_id: Optional[int]
    element_type: str
    change_kind: ChangeKind
    identity_key: str
    external_id: Optional[str] = None
    name: Optional[str] = None
    old_properties: Optional[Dict[str, Any]] = None
    new_properties: Optional[Dict[str, Any]] = None
    property_changes: List[PropertyChange] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        data: Dict[str, Any] = {
            "local_id": self.local_id,
            "element_type": self.element_type,
            "external_id": self.external_id,
            "name": self.name,
            "change_kind": self.change_kind.name,
            "identity_key": self.identity_key,
        }
        if self.old_properties is not None:
            data["old_properties"] = self.old_properties
        if self.new_properties is not None:
            data["new_properties"] = self.new_properties
        if self.change_kind == ChangeKind.MODIFIED:
            data["property_changes"] = [c.to_dict() for c in self.property_changes]
        return data


@dataclass
class TypeChangeCounts:
    """Per element type change counts."""
    added: int = 0
    removed: int = 0
    modified: int = 0

    @property
    def total(self) -> int:
        return self.added + self.removed + self.modified


@dataclass
class ComparisonStatistics:
    """Aggregate counts of a comparison."""
    total_changes: int
    added_count: int
    removed_count: int
    modified_count: int
    unchanged_count: int
    changes_by_type: Dict[str, TypeChangeCounts] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_changes": self.total_changes,
            "added_count": self.added_count,
            "removed_count": self.removed_count,
            "modified_count": self.modified_count,
            "unchanged_count": self.unchanged_count,
            "changes_by_type": {
                element_type: {
                    "added": counts.added,
                    "removed": counts.removed,
                    "modified": counts.modified,
                }
                for element_type, counts in self.changes_by_type.items()
            },
        }


@dataclass
class ComparisonResult:
    """
    Complete delta between two model snapshots.

    Consumed by the 3D diff highlighting, statistics widgets and the
    critical change classifier.
    """
    added: List[ElementChange]
    removed: List[ElementChange]
    modified: List[ElementChange]
    unchanged_count: int
    statistics: ComparisonStatistics

    @property
    def total_elements(self) -> int:
        """Distinct identity keys across both snapshots."""
        return len(self.added) + len(self.removed) + len(self.modified) + self.unchanged_count

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.modified)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "added": [c.to_dict() for c in self.added],
            "removed": [c.to_dict() for c in self.removed],
            "modified": [c.to_dict() for c in self.modified],
            "unchanged_count": self.unchanged_count,
            "statistics": self.statistics.to_dict(),
        }


def _compute_statistics(
    added: List[ElementChange],
    removed: List[ElementChange],
    modified: List[ElementChange],
    unchanged_count: int
) -> ComparisonStatistics:
    changes_by_type: Dict[str, TypeChangeCounts] = {}

    for change in added:
        changes_by_type.setdefault(change.element_type, TypeChangeCounts()).added += 1
    for change in removed:
        changes_by_type.setdefault(change.element_type, TypeChangeCounts()).removed += 1
    for change in modified:
        changes_by_type.setdefault(change.element_type, TypeChangeCounts()).modified += 1

    return ComparisonStatistics(
        total_changes=len(added) + len(removed) + len(modified),
        added_count=len(added),
        removed_count=len(removed),
        modified_count=len(modified),
        unchanged_count=unchanged_count,
        changes_by_type=changes_by_type
    )


# =============================================================================
# MAIN COMPARISON FUNCTION
# =============================================================================

def compare_models(
    old_elements: Iterable[Union[IfcElement, Mapping[str, Any]]],
    new_elements: Iterable[Union[IfcElement, Mapping[str, Any]]]
) -> ComparisonResult:
    """
    Compare two model snapshots and produce a structured delta.

    The function:
    1. Matches elements by identity key (GlobalId, else type_expressId)
    2. Emits ADDED for new-only and REMOVED for old-only elements
    3. Diffs properties of matched pairs: no difference counts as
       unchanged, otherwise MODIFIED with the property changes
    4. Aggregates statistics overall and per element type

    Empty inputs are valid: an empty old snapshot yields all ADDED, an
    empty new snapshot all REMOVED.

    Args:
        old_elements: Elements (IfcElement or dict records) of the old snapshot
        new_elements: Elements (IfcElement or dict records) of the new snapshot

    Returns:
        ComparisonResult. ADDED and MODIFIED follow new snapshot order,
        REMOVED follows old snapshot order.

    Example:
        >>> result = compare_models(old, new)
        >>> for change in result.modified:
        ...     print(change.identity_key, [c.property_name for c in change.property_changes])
    """
    match = match_elements(old_elements, new_elements)

    added = [
        ElementChange(
            local_id=element.local_id,
            element_type=element.element_type,
            change_kind=ChangeKind.ADDED,
            identity_key=identity_key(element),
            external_id=element.external_id,
            name=element.name,
            new_properties=element.properties if element.properties is not None else {}
        )
        for element in match.only_new
    ]

    removed = [
        ElementChange(
            local_id=element.local_id,
            element_type=element.element_type,
            change_kind=ChangeKind.REMOVED,
            identity_key=identity_key(element),
            external_id=element.external_id,
            name=element.name,
            old_properties=element.properties if element.properties is not None else {}
        )
        for element in match.only_old
    ]

    modified = []
    unchanged_count = 0
    for old_element, new_element in match.pairs:
        changes = diff_properties(old_element.properties, new_element.properties)
        if not changes:
            unchanged_count += 1
            continue

        # Report the element as it looks in the newer snapshot
        modified.append(ElementChange(
            local_id=new_element.local_id,
            element_type=new_element.element_type,
            change_kind=ChangeKind.MODIFIED,
            identity_key=identity_key(new_element),
            external_id=new_element.external_id,
            name=new_element.name,
            old_properties=old_element.properties if old_element.properties is not None else {},
            new_properties=new_element.properties if new_element.properties is not None else {},
            property_changes=changes
        ))

    statistics = _compute_statistics(added, removed, modified, unchanged_count)

    logger.info(
        f"Comparison complete: {statistics.added_count} added, "
        f"{statistics.removed_count} removed, {statistics.modified_count} modified, "
        f"{unchanged_count} unchanged"
    )

    return ComparisonResult(
        added=added,
        removed=removed,
        modified=modified,
        unchanged_count=unchanged_count,
        statistics=statistics
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def generate_change_summary(result: ComparisonResult) -> str:
    """
    Render a plain-text summary of a comparison.

    Lists the overall counts followed by one block per element type that
    has at least one change.
    """
    stats = result.statistics
    lines = [
        f"Total changes detected: {stats.total_changes}",
        f"- Added elements: {stats.added_count}",
        f"- Removed elements: {stats.removed_count}",
        f"- Modified elements: {stats.modified_count}",
        f"- Unchanged elements: {stats.unchanged_count}",
        "",
        "Changes by element type:",
    ]

    for element_type, counts in stats.changes_by_type.items():
        if counts.total == 0:
            continue
        lines.append(f"  {element_type}:")
        if counts.added:
            lines.append(f"    + {counts.added} added")
        if counts.removed:
            lines.append(f"    - {counts.removed} removed")
        if counts.modified:
            lines.append(f"    ~ {counts.modified} modified")

    return "\n".join(lines)


def filter_changes_by_type(result: ComparisonResult, element_type: str) -> ComparisonResult:
    """
    Restrict a result to one element type (exact match).

    unchanged_count and statistics are carried over from the full result.
    """
    return ComparisonResult(
        added=[c for c in result.added if c.element_type == element_type],
        removed=[c for c in result.removed if c.element_type == element_type],
        modified=[c for c in result.modified if c.element_type == element_type],
        unchanged_count=result.unchanged_count,
        statistics=result.statistics
    )


def filter_changes_by_change_type(
    result: ComparisonResult,
    change_kind: Union[ChangeKind, str]
) -> List[ElementChange]:
    """
    Get the change list for one kind.

    Args:
        result: Comparison result
        change_kind: ChangeKind or its name ("added", "removed", "modified")

    Raises:
        ValueError: If change_kind is not a known kind
    """
    if isinstance(change_kind, str):
        try:
            change_kind = ChangeKind[change_kind.upper()]
        except KeyError:
            raise ValueError(
                f"Unknown change kind: {change_kind}. Supported kinds: added, removed, modified"
            ) from None

    if change_kind == ChangeKind.ADDED:
        return result.added
    if change_kind == ChangeKind.REMOVED:
        return result.removed
    return result.modified
