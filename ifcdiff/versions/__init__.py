"""Model version lineages and comparison selection."""

from .lineage import (
    group_lineages,
    resolve_pair,
    resolve_sequence,
    update_selection,
    derive_base_name,
    find_snapshot,
    snapshot_from_dict,
    VersionSnapshot,
    VersionLineage,
)

__all__ = [
    "group_lineages",
    "resolve_pair",
    "resolve_sequence",
    "update_selection",
    "derive_base_name",
    "find_snapshot",
    "snapshot_from_dict",
    "VersionSnapshot",
    "VersionLineage",
]
