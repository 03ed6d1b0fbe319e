"""Detect which product/package shape an extracted payload carries.

Precedence is fixed: Nested (``packages[]``) > Flat (``products[]``) >
Singular (``product``). The first shape with usable entries wins; the others
are ignored entirely.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Union

from app.reconciliation_engine.normalizers import is_present


class ShapeKind(str, enum.Enum):
    NESTED = "nested"
    FLAT = "flat"
    SINGULAR = "singular"
    NONE = "none"


@dataclass(frozen=True)
class NestedShape:
    packages: list[dict] = field(default_factory=list)
    kind: ShapeKind = ShapeKind.NESTED


@dataclass(frozen=True)
class FlatShape:
    products: list[dict] = field(default_factory=list)
    kind: ShapeKind = ShapeKind.FLAT


@dataclass(frozen=True)
class SingularShape:
    product: dict = field(default_factory=dict)
    kind: ShapeKind = ShapeKind.SINGULAR


@dataclass(frozen=True)
class NoShape:
    kind: ShapeKind = ShapeKind.NONE


PayloadShape = Union[NestedShape, FlatShape, SingularShape, NoShape]


def _usable_entries(value: Any) -> list[dict]:
    """Dict entries of a list; non-dict items are dropped, non-lists yield []."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def detect_shape(payload: dict) -> PayloadShape:
    """Classify a canonicalized payload (see normalizers.canonicalize)."""
    packages = _usable_entries(payload.get("packages"))
    if packages:
        return NestedShape(packages=packages)

    products = _usable_entries(payload.get("products"))
    if products:
        return FlatShape(products=products)

    product = payload.get("product")
    if isinstance(product, dict) and is_present(product):
        return SingularShape(product=product)

    return NoShape()
