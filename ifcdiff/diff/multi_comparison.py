"""
Comparison across more than two model versions.

Two shapes are supported:
- compare_multiple_versions: every ordered pair (N x N matrix), for the
  change-intensity heatmap
- compare_sequence: consecutive pairs of a chronologically ordered chain,
  as produced by resolve_sequence
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple, Union

from .model_diff import ComparisonResult, IfcElement, compare_models

logger = logging.getLogger(__name__)

ModelVersion = Union[Tuple[Any, Iterable[Union[IfcElement, Mapping[str, Any]]]], Mapping[str, Any]]


@dataclass
class MultiComparisonCell:
    """Change counts for comparing old_version_id -> new_version_id."""
    old_version_id: Any
    new_version_id: Any
    total_changes: int = 0
    added_count: int = 0
    removed_count: int = 0
    modified_count: int = 0


@dataclass
class MultiComparisonSummary:
    total_comparisons: int
    max_changes: int
    min_changes: int
    avg_changes: float


@dataclass
class MultiComparisonResult:
    version_ids: List[Any]
    matrix: List[List[MultiComparisonCell]]
    summary: MultiComparisonSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version_ids": self.version_ids,
            "matrix": [
                [
                    {
                        "old_version_id": cell.old_version_id,
                        "new_version_id": cell.new_version_id,
                        "total_changes": cell.total_changes,
                        "added_count": cell.added_count,
                        "removed_count": cell.removed_count,
                        "modified_count": cell.modified_count,
                    }
                    for cell in row
                ]
                for row in self.matrix
            ],
            "summary": {
                "total_comparisons": self.summary.total_comparisons,
                "max_changes": self.summary.max_changes,
                "min_changes": self.summary.min_changes,
                "avg_changes": self.summary.avg_changes,
            },
        }


def _unpack(model: ModelVersion) -> Tuple[Any, List[Union[IfcElement, Mapping[str, Any]]]]:
    if isinstance(model, Mapping):
        return model["id"], list(model.get("elements") or [])
    version_id, elements = model
    return version_id, list(elements)


def compare_multiple_versions(models: Sequence[ModelVersion]) -> MultiComparisonResult:
    """
    Compare every ordered pair of model versions.

    Cell [i][j] compares version i (old) against version j (new). Diagonal
    cells are zero and are not computed. The summary statistics only look
    at off-diagonal comparisons that found at least one change.

    Args:
        models: (version_id, elements) pairs or {"id": ..., "elements": [...]} dicts

    Returns:
        MultiComparisonResult with an N x N matrix

    Raises:
        ValueError: If fewer than two versions are given
    """
    unpacked = [_unpack(model) for model in models]
    n = len(unpacked)
    if n < 2:
        raise ValueError(f"At least 2 model versions are required for comparison, got {n}")

    version_ids = [version_id for version_id, _ in unpacked]
    matrix: List[List[MultiComparisonCell]] = []
    change_counts: List[int] = []

    for i in range(n):
        row = []
        for j in range(n):
            if i == j:
                row.append(MultiComparisonCell(
                    old_version_id=version_ids[i],
                    new_version_id=version_ids[j]
                ))
                continue

            stats = compare_models(unpacked[i][1], unpacked[j][1]).statistics
            row.append(MultiComparisonCell(
                old_version_id=version_ids[i],
                new_version_id=version_ids[j],
                total_changes=stats.total_changes,
                added_count=stats.added_count,
                removed_count=stats.removed_count,
                modified_count=stats.modified_count
            ))
            change_counts.append(stats.total_changes)
        matrix.append(row)

    non_zero = [count for count in change_counts if count > 0]
    summary = MultiComparisonSummary(
        total_comparisons=n * (n - 1),
        max_changes=max(non_zero) if non_zero else 0,
        min_changes=min(non_zero) if non_zero else 0,
        avg_changes=sum(non_zero) / len(non_zero) if non_zero else 0
    )

    logger.info(f"Compared {n} versions ({summary.total_comparisons} comparisons)")

    return MultiComparisonResult(version_ids=version_ids, matrix=matrix, summary=summary)


def generate_heatmap(matrix: List[List[MultiComparisonCell]]) -> List[List[float]]:
    """
    Normalize a comparison matrix to change intensities in [0, 1].

    Each cell is divided by the largest off-diagonal total; when nothing
    changed anywhere every cell is 0.
    """
    n = len(matrix)
    max_changes = 0
    for i in range(n):
        for j in range(n):
            if i != j and matrix[i][j].total_changes > max_changes:
                max_changes = matrix[i][j].total_changes

    if max_changes == 0:
        return [[0.0] * n for _ in range(n)]

    return [
        [matrix[i][j].total_changes / max_changes for j in range(n)]
        for i in range(n)
    ]


def compare_sequence(models: Sequence[ModelVersion]) -> List[Tuple[Any, Any, ComparisonResult]]:
    """
    Compare each version of an ordered chain with the one before it.

    The caller supplies the chain in chronological order (see
    resolve_sequence); nothing is reordered here.

    Returns:
        List of (older_version_id, newer_version_id, ComparisonResult),
        one per consecutive pair

    Raises:
        ValueError: If fewer than two versions are given
    """
    unpacked = [_unpack(model) for model in models]
    if len(unpacked) < 2:
        raise ValueError(f"At least 2 model versions are required for comparison, got {len(unpacked)}")

    return [
        (older_id, newer_id, compare_models(older_elements, newer_elements))
        for (older_id, older_elements), (newer_id, newer_elements) in zip(unpacked, unpacked[1:])
    ]
