"""Model snapshot comparison and critical change detection."""

from .values import MISSING, values_equal

from .model_diff import (
    compare_models,
    diff_properties,
    match_elements,
    identity_key,
    element_from_dict,
    generate_change_summary,
    filter_changes_by_type,
    filter_changes_by_change_type,
    IfcElement,
    PropertyChange,
    ElementMatch,
    ElementChange,
    ChangeKind,
    TypeChangeCounts,
    ComparisonStatistics,
    ComparisonResult,
)

from .critical_changes import (
    classify_critical_changes,
    get_high_severity_changes,
    is_critical_element,
    is_critical_property,
    Severity,
    CriticalChange,
    CriticalChangesSummary,
    CriticalChangesReport,
)

from .multi_comparison import (
    compare_multiple_versions,
    compare_sequence,
    generate_heatmap,
    MultiComparisonCell,
    MultiComparisonSummary,
    MultiComparisonResult,
)

__all__ = [
    # Layer 1: Model Diff
    "MISSING",
    "values_equal",
    "compare_models",
    "diff_properties",
    "match_elements",
    "identity_key",
    "element_from_dict",
    "generate_change_summary",
    "filter_changes_by_type",
    "filter_changes_by_change_type",
    "IfcElement",
    "PropertyChange",
    "ElementMatch",
    "ElementChange",
    "ChangeKind",
    "TypeChangeCounts",
    "ComparisonStatistics",
    "ComparisonResult",
    # Layer 2: Critical Changes
    "classify_critical_changes",
    "get_high_severity_changes",
    "is_critical_element",
    "is_critical_property",
    "Severity",
    "CriticalChange",
    "CriticalChangesSummary",
    "CriticalChangesReport",
    # Multi-version
    "compare_multiple_versions",
    "compare_sequence",
    "generate_heatmap",
    "MultiComparisonCell",
    "MultiComparisonSummary",
    "MultiComparisonResult",
]
