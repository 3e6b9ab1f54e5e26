"""
Deep value equality for element property values.

Property values come out of the model parser as JSON-like trees:
None, bool, int/float, str, lists (or tuples) and mappings. The comparison
is structural and strict about kinds: True is not 1, a list is not a dict,
and a property that does not exist (MISSING) is not the same as a property
whose value is None.

PRECONDITION: values are tree-shaped. The parser never produces cycles, so
no cycle detection is done; recursion depth equals nesting depth, which is
small in practice (dimension and material sub-objects).
"""

from collections.abc import Mapping
from typing import Any


class _Missing:
    """Marker for a property that is absent on one side of a comparison."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<MISSING>"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return (_Missing, ())


MISSING = _Missing()


def _kind(value: Any) -> str:
    # bool is checked before numbers because bool subclasses int
    if value is MISSING:
        return "missing"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "list"
    if isinstance(value, Mapping):
        return "mapping"
    return "other"


def values_equal(a: Any, b: Any) -> bool:
    """
    Structural equality between two property values.

    Rules, in order:
    1. Same object, or equal primitives of the same kind -> True
       (two MISSING markers are equal).
    2. Exactly one side is MISSING/None -> False.
    3. Different kinds (list vs mapping, bool vs number, ...) -> False.
    4. Lists: same length and element-wise equal, order-sensitive.
    5. Mappings: same number of keys and every key of ``a`` present in ``b``
       with an equal value.

    Never raises.
    """
    if a is b:
        return True

    kind_a = _kind(a)
    kind_b = _kind(b)

    if kind_a in ("missing", "null") or kind_b in ("missing", "null"):
        return False

    if kind_a != kind_b:
        return False

    if kind_a == "list":
        if len(a) != len(b):
            return False
        return all(values_equal(x, y) for x, y in zip(a, b))

    if kind_a == "mapping":
        if len(a) != len(b):
            return False
        for key, value in a.items():
            if key not in b:
                return False
            if not values_equal(value, b[key]):
                return False
        return True

    if kind_a == "other":
        # Parser output never lands here; objects whose __eq__ is not a
        # plain bool (array-likes) compare unequal
        try:
            return bool(a == b)
        except (TypeError, ValueError):
            return False

    return a == b
