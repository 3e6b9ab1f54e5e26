"""
Unit tests for critical change detection (Layer 2).

These tests verify that:
1. Only structural element types are reported
2. Severity follows the change kind and the changed properties
3. The report summary agrees with the change list
4. The comparison result is not mutated
"""

import pytest

from ifcdiff.config import ClassifierConfig
from ifcdiff.diff.model_diff import compare_models, IfcElement, ChangeKind
from ifcdiff.diff.critical_changes import (
    classify_critical_changes,
    get_high_severity_changes,
    is_critical_element,
    is_critical_property,
    Severity,
)


# =============================================================================
# FIXTURES
# =============================================================================

def make_element(
    local_id: int,
    element_type: str,
    external_id: str = None,
    properties: dict = None
) -> IfcElement:
    """Helper to create IfcElement objects for testing."""
    return IfcElement(
        local_id=local_id,
        element_type=element_type,
        external_id=external_id,
        properties=properties or {}
    )


def modified_result(element_type: str, old_props: dict, new_props: dict):
    """Comparison with a single modified element."""
    return compare_models(
        [make_element(1, element_type, "e1", old_props)],
        [make_element(1, element_type, "e1", new_props)]
    )


# =============================================================================
# MATCHING
# =============================================================================

class TestCriticalElementTypes:
    """Tests for structural type detection."""

    @pytest.mark.parametrize("element_type", [
        "IfcWall", "IfcWallStandardCase", "IfcColumn", "IfcBeam",
        "IfcSlab", "IfcFooting", "IfcPile", "IfcRoof",
    ])
    def test_structural_types(self, element_type):
        assert is_critical_element(element_type) is True

    @pytest.mark.parametrize("element_type", [
        "IfcDoor", "IfcWindow", "IfcFurniture", "IfcSpace", "IfcCurtainWall", "",
    ])
    def test_non_structural_types(self, element_type):
        assert is_critical_element(element_type) is False

    def test_case_insensitive(self):
        assert is_critical_element("ifcwall") is True
        assert is_critical_element("IFCCOLUMN") is True
        assert is_critical_element("IfcBeAm") is True

    def test_without_ifc_prefix(self):
        assert is_critical_element("Wall") is True
        assert is_critical_element("wall-standard-case") is True

    def test_custom_types(self):
        assert is_critical_element("IfcDoor", ["IfcDoor"]) is True
        assert is_critical_element("IfcWall", ["IfcDoor"]) is False


class TestCriticalProperties:
    """Tests for critical property detection."""

    @pytest.mark.parametrize("name", [
        "LoadBearing", "load_bearing", "Pset_WallCommon.LoadBearing",
        "IsExternal", "Thickness", "OverallWidth", "NominalHeight", "Length", "Material",
        "StructuralType",
    ])
    def test_critical(self, name):
        assert is_critical_property(name) is True

    @pytest.mark.parametrize("name", ["Color", "Name", "Tag", "FireRating"])
    def test_cosmetic(self, name):
        assert is_critical_property(name) is False


# =============================================================================
# SEVERITY
# =============================================================================

class TestSeverity:
    """Tests for severity assignment."""

    def test_added_is_medium(self):
        result = compare_models([], [make_element(1, "IfcWall", "w1"), make_element(2, "IfcColumn", "c1")])
        report = classify_critical_changes(result)

        assert report.has_critical_changes is True
        assert [c.severity for c in report.critical_changes] == [Severity.MEDIUM, Severity.MEDIUM]
        assert report.summary.medium_severity == 2

    def test_removed_is_high(self):
        result = compare_models([make_element(1, "IfcWall", "w1"), make_element(2, "IfcBeam", "b1")], [])
        report = classify_critical_changes(result)

        assert all(c.severity == Severity.HIGH for c in report.critical_changes)
        assert report.summary.high_severity == 2

    def test_load_bearing_change_is_high(self):
        report = classify_critical_changes(modified_result("Wall", {"LoadBearing": True}, {"LoadBearing": False}))

        assert len(report.critical_changes) == 1
        assert report.critical_changes[0].severity == Severity.HIGH

    def test_cosmetic_change_is_low(self):
        report = classify_critical_changes(modified_result("Wall", {"Color": "grey"}, {"Color": "white"}))

        assert len(report.critical_changes) == 1
        assert report.critical_changes[0].severity == Severity.LOW

    def test_any_critical_property_escalates(self):
        report = classify_critical_changes(
            modified_result("IfcSlab", {"Color": "a", "Thickness": 0.2}, {"Color": "b", "Thickness": 0.3})
        )
        assert report.critical_changes[0].severity == Severity.HIGH

    def test_added_critical_property_escalates(self):
        report = classify_critical_changes(modified_result("IfcBeam", {}, {"Material": "Steel"}))
        assert report.critical_changes[0].severity == Severity.HIGH

    def test_never_high_on_addition(self):
        result = compare_models([], [make_element(i, t) for i, t in enumerate(["IfcWall", "IfcPile", "IfcRoof"])])
        report = classify_critical_changes(result)
        assert report.summary.high_severity == 0

    def test_custom_properties(self):
        config = ClassifierConfig(critical_types=frozenset(["IfcWall"]), critical_properties=frozenset(["color"]))
        report = classify_critical_changes(modified_result("IfcWall", {"Color": "a"}, {"Color": "b"}), config)
        assert report.critical_changes[0].severity == Severity.HIGH


# =============================================================================
# REPORT
# =============================================================================

class TestReport:
    """Tests for report content."""

    def test_non_critical_excluded(self):
        old = [make_element(1, "IfcDoor", "d1", {"Width": 0.9}), make_element(2, "IfcWindow", "win1")]
        new = [make_element(1, "IfcDoor", "d1", {"Width": 1.0}), make_element(3, "IfcWindow", "win2")]
        report = classify_critical_changes(compare_models(old, new))

        assert report.has_critical_changes is False
        assert report.critical_changes == []
        assert report.summary.total_critical == 0

    def test_mixed_report(self):
        old = [
            make_element(1, "IfcWall", "w1", {"Thickness": 0.2}),
            make_element(2, "IfcColumn", "c1", {"Color": "red"}),
            make_element(3, "IfcBeam", "b1"),
            make_element(4, "IfcDoor", "d1"),
        ]
        new = [
            make_element(1, "IfcWall", "w1", {"Thickness": 0.3}),
            make_element(2, "IfcColumn", "c1", {"Color": "blue"}),
            make_element(5, "IfcSlab", "s1"),
            make_element(6, "IfcWindow", "win1"),
        ]
        report = classify_critical_changes(compare_models(old, new))

        assert report.summary.total_critical == 4
        assert report.summary.high_severity == 2
        assert report.summary.medium_severity == 1
        assert report.summary.low_severity == 1
        kinds = [c.change_kind for c in report.critical_changes]
        assert kinds == [ChangeKind.ADDED, ChangeKind.REMOVED, ChangeKind.MODIFIED, ChangeKind.MODIFIED]
        assert len(report.changes_by_kind(ChangeKind.MODIFIED)) == 2
        assert len(report.changes_by_severity(Severity.HIGH)) == 2

    def test_descriptions(self):
        old = [make_element(1, "IfcWall", "w1", {"Height": 3.0}), make_element(2, "IfcBeam")]
        new = [make_element(1, "IfcWall", "w1", {"Height": 3.5}), make_element(3, "IfcColumn", "c1")]
        report = classify_critical_changes(compare_models(old, new))

        descriptions = [c.description for c in report.critical_changes]
        assert descriptions == [
            "IfcColumn element added: c1",
            "IfcBeam element removed: #2",
            "IfcWall element modified: w1 (Height)",
        ]

    def test_modified_keeps_property_changes(self):
        report = classify_critical_changes(modified_result("IfcWall", {"Height": 3.0}, {"Height": 3.5}))
        assert report.critical_changes[0].property_changes[0].property_name == "Height"

    def test_result_not_mutated(self):
        result = modified_result("IfcWall", {"Height": 3.0}, {"Height": 3.5})
        before = result.to_dict()
        classify_critical_changes(result)
        assert result.to_dict() == before

    def test_get_high_severity_changes(self):
        result = compare_models(
            [make_element(1, "IfcWall", "w1")],
            [make_element(2, "IfcColumn", "c1")]
        )
        high = get_high_severity_changes(result)
        assert [c.external_id for c in high] == ["w1"]

    def test_to_dict(self):
        result = compare_models([make_element(1, "IfcWall", "w1")], [])
        data = classify_critical_changes(result).to_dict()

        assert data["has_critical_changes"] is True
        assert data["summary"] == {
            "total_critical": 1, "high_severity": 1, "medium_severity": 0, "low_severity": 0
        }
        assert data["critical_changes"][0]["severity"] == "HIGH"
        assert data["critical_changes"][0]["change_kind"] == "REMOVED"
