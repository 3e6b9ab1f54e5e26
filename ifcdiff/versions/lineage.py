"""
Version lineages of uploaded models.

Uploads of the same model are named "<base>_v<N>" by convention. Grouping
strips that suffix, collects snapshots sharing a base name into a lineage,
orders each lineage by creation time and numbers the versions 1..N.

The selection helpers turn a set of user-picked snapshot ids into the
canonical comparison order: resolve_pair for a plain old -> new comparison,
resolve_sequence for a chain of 2-5 versions compared pairwise by the caller.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..schema import MAX_SELECTION, MIN_SELECTION, VERSION_SUFFIX_PATTERN

logger = logging.getLogger(__name__)


@dataclass
class VersionSnapshot:
    """
    Metadata of one stored model snapshot.

    version_number is None on input and set to the 1-based rank inside its
    lineage by group_lineages.
    """
    id: Any
    name: str
    created_at: datetime
    element_count: int = 0
    version_number: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at.isoformat(),
            "element_count": self.element_count,
            "version_number": self.version_number,
        }


@dataclass
class VersionLineage:
    """Snapshots sharing a base name, oldest first."""
    base_name: str
    versions: List[VersionSnapshot] = field(default_factory=list)

    @property
    def latest(self) -> Optional[VersionSnapshot]:
        return self.versions[-1] if self.versions else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_name": self.base_name,
            "versions": [v.to_dict() for v in self.versions],
        }


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _parse_timestamp(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        return _as_utc(value)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError:
        raise ValueError(f"Invalid createdAt timestamp: {value!r}") from None


def snapshot_from_dict(record: Mapping[str, Any]) -> VersionSnapshot:
    """
    Build a VersionSnapshot from a plain dict record.

    Accepts camelCase (createdAt, elementCount) or snake_case keys;
    createdAt may be a datetime or an ISO-8601 string ("2024-01-02",
    "2024-01-02T10:00:00Z"). Timestamps without an offset are taken as UTC.

    Raises:
        ValueError: If the timestamp cannot be parsed
    """
    created_at = record.get("created_at", record.get("createdAt"))
    element_count = record.get("element_count", record.get("elementCount"))
    return VersionSnapshot(
        id=record["id"],
        name=record.get("name") or "",
        created_at=_parse_timestamp(created_at),
        element_count=element_count or 0
    )


def _coerce_snapshot(snapshot: Union[VersionSnapshot, Mapping[str, Any]]) -> VersionSnapshot:
    if isinstance(snapshot, VersionSnapshot):
        return snapshot
    return snapshot_from_dict(snapshot)


def derive_base_name(name: str) -> str:
    """
    Strip a trailing "_v<digits>" version suffix.

    "Building_v2" -> "Building", "Building" -> "Building",
    "Building_v2_final" -> "Building_v2_final".
    """
    return VERSION_SUFFIX_PATTERN.sub("", name)


# =============================================================================
# GROUPING
# =============================================================================

def group_lineages(
    snapshots: Iterable[Union[VersionSnapshot, Mapping[str, Any]]]
) -> List[VersionLineage]:
    """
    Group snapshots into version lineages.

    Lineages appear in order of first occurrence of their base name.
    Within a lineage, versions are sorted by created_at; equal timestamps
    keep their input order. Returned snapshots are copies carrying
    version_number; the inputs are left untouched.

    Args:
        snapshots: VersionSnapshot objects or dict records

    Returns:
        List of VersionLineage

    Example:
        >>> lineages = group_lineages([
        ...     {"id": 1, "name": "B_v2", "createdAt": "2024-01-02"},
        ...     {"id": 2, "name": "B_v1", "createdAt": "2024-01-01"},
        ... ])
        >>> [(v.id, v.version_number) for v in lineages[0].versions]
        [(2, 1), (1, 2)]
    """
    groups: Dict[str, List[VersionSnapshot]] = {}
    for snapshot in snapshots:
        snapshot = _coerce_snapshot(snapshot)
        groups.setdefault(derive_base_name(snapshot.name), []).append(snapshot)

    lineages = []
    for base_name, members in groups.items():
        # sorted() is stable, so ties keep input order
        ordered = sorted(members, key=lambda s: _as_utc(s.created_at))
        versions = [
            replace(snapshot, version_number=index + 1)
            for index, snapshot in enumerate(ordered)
        ]
        logger.debug(f"Lineage '{base_name}': {len(versions)} version(s)")
        lineages.append(VersionLineage(base_name=base_name, versions=versions))

    return lineages


def find_snapshot(lineages: Iterable[VersionLineage], snapshot_id: Any) -> Optional[VersionSnapshot]:
    """Look up a snapshot by id across all lineages."""
    for lineage in lineages:
        for version in lineage.versions:
            if version.id == snapshot_id:
                return version
    return None


# =============================================================================
# SELECTION
# =============================================================================

def _resolve_selection(
    lineages: Sequence[VersionLineage],
    selected_ids: Sequence[Any],
    min_count: int,
    max_count: int
) -> List[VersionSnapshot]:
    selected_ids = list(selected_ids)

    if not min_count <= len(selected_ids) <= max_count:
        if min_count == max_count:
            expected = f"exactly {min_count}"
        else:
            expected = f"between {min_count} and {max_count}"
        raise ValueError(
            f"Selection must contain {expected} snapshot ids, got {len(selected_ids)}"
        )

    seen = []
    for snapshot_id in selected_ids:
        if snapshot_id in seen:
            raise ValueError(f"Snapshot id {snapshot_id!r} selected more than once")
        seen.append(snapshot_id)

    resolved = []
    missing = []
    for snapshot_id in selected_ids:
        snapshot = find_snapshot(lineages, snapshot_id)
        if snapshot is None:
            missing.append(snapshot_id)
        else:
            resolved.append(snapshot)

    if missing:
        raise ValueError(
            f"Snapshot ids not found in any lineage: {', '.join(repr(i) for i in missing)}"
        )

    # Equal timestamps fall back to the smaller id
    return sorted(resolved, key=lambda s: (_as_utc(s.created_at), s.id))


def resolve_pair(lineages: Sequence[VersionLineage], selected_ids: Sequence[Any]) -> Tuple[Any, Any]:
    """
    Order two selected snapshots for a comparison.

    Args:
        lineages: Output of group_lineages
        selected_ids: Exactly two distinct snapshot ids, in any order

    Returns:
        (older_id, newer_id) by created_at; equal timestamps put the smaller id first

    Raises:
        ValueError: If not exactly two distinct ids are given, or an id is unknown
    """
    older, newer = _resolve_selection(lineages, selected_ids, 2, 2)
    return older.id, newer.id


def resolve_sequence(lineages: Sequence[VersionLineage], selected_ids: Sequence[Any]) -> List[Any]:
    """
    Order 2-5 selected snapshots chronologically for a chained comparison.

    The caller compares consecutive entries; no comparison runs here.

    Raises:
        ValueError: If fewer than 2 or more than 5 distinct ids are given,
                    or an id is unknown
    """
    ordered = _resolve_selection(lineages, selected_ids, MIN_SELECTION, MAX_SELECTION)
    return [snapshot.id for snapshot in ordered]


def update_selection(
    selected_ids: Sequence[Any],
    snapshot_id: Any,
    max_selections: int = 2
) -> List[Any]:
    """
    Toggle a snapshot in a working selection.

    A selected id is removed. A new id is appended; when the selection is
    already full the oldest pick is dropped first.

    Args:
        selected_ids: Current selection, oldest pick first
        snapshot_id: Id to toggle
        max_selections: Selection capacity, 2 for a pair or up to 5 for a chain

    Returns:
        New selection list (the input is not modified)

    Raises:
        ValueError: If max_selections is outside 2-5
    """
    if not MIN_SELECTION <= max_selections <= MAX_SELECTION:
        raise ValueError(
            f"max_selections must be between {MIN_SELECTION} and {MAX_SELECTION}, got {max_selections}"
        )

    if snapshot_id in selected_ids:
        return [i for i in selected_ids if i != snapshot_id]

    if len(selected_ids) < max_selections:
        return list(selected_ids) + [snapshot_id]

    return list(selected_ids[len(selected_ids) - max_selections + 1:]) + [snapshot_id]
