"""Static configuration data for model comparison and version grouping."""

import re
from typing import List

# Structural element categories that warrant review when they change.
# Matched against the element type after lowercasing and stripping the
# "Ifc" prefix, so "IfcWallStandardCase" and "wall-standard-case" both hit "wall".
CRITICAL_ELEMENT_TYPES: List[str] = [
    "IfcWall",
    "IfcWallStandardCase",
    "IfcColumn",
    "IfcBeam",
    "IfcSlab",
    "IfcFooting",
    "IfcPile",
    "IfcRoof",
]

# Property names that escalate a modified critical element to HIGH severity.
# Matched as substrings of the normalized property name, so
# "Pset_WallCommon.LoadBearing" and "load_bearing" both hit "loadbearing".
CRITICAL_PROPERTY_NAMES: List[str] = [
    "loadbearing",
    "isexternal",
    "thickness",
    "width",
    "height",
    "length",
    "material",
    "structuraltype",
]

# Trailing "_v<digits>" suffix marking a model name as one version of a lineage
VERSION_SUFFIX_PATTERN = re.compile(r"_v\d+$")

# Bounds on how many snapshots a caller may select for comparison
MIN_SELECTION = 2
MAX_SELECTION = 5
