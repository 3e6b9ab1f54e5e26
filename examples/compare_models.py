#!/usr/bin/env python3
"""Example: Compare two exported model snapshots and list critical changes.

Each input file is a JSON array of element records as produced by the
model parser, e.g.:

    [{"expressId": 12, "type": "IfcWall", "globalId": "2O2Fr$t4X7Zf8NOew3FLOH",
      "properties": {"LoadBearing": true, "Height": 3.0}}]
"""

import json
from pathlib import Path

from ifcdiff import ClassifierConfig, compare_models, classify_critical_changes
from ifcdiff.diff import generate_change_summary


def compare_files(old_file: str, new_file: str):
    """Compare two element exports and print the change report.

    Critical element types and properties can be overridden through
    IFCDIFF_CRITICAL_TYPES / IFCDIFF_CRITICAL_PROPERTIES or a .env file
    next to this script.

    Args:
        old_file: Path to the older element export
        new_file: Path to the newer element export
    """
    old_elements = json.loads(Path(old_file).read_text(encoding="utf-8"))
    new_elements = json.loads(Path(new_file).read_text(encoding="utf-8"))

    config = ClassifierConfig.from_env(env_file=Path(__file__).parent / ".env")

    result = compare_models(old_elements, new_elements)
    print(generate_change_summary(result))

    report = classify_critical_changes(result, config)
    if not report.has_critical_changes:
        print("\n✓ No structural elements affected")
        return result, report

    print(f"\n⚠ Critical changes: {report.summary.total_critical} "
          f"(high: {report.summary.high_severity}, "
          f"medium: {report.summary.medium_severity}, "
          f"low: {report.summary.low_severity})")
    for change in report.critical_changes:
        print(f"  [{change.severity.name}] {change.description}")

    return result, report


if __name__ == "__main__":
    import sys

    if len(sys.argv) < 3:
        print("Usage: python compare_models.py <old_elements.json> <new_elements.json>")
        print("\nExample:")
        print("  python compare_models.py building_v1.json building_v2.json")
        sys.exit(1)

    compare_files(sys.argv[1], sys.argv[2])
