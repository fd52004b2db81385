"""Transform Bounded Context - Value Objects.

Immutable data structures representing 2D affine transforms and their
decompositions. All validation occurs at construction time via Pydantic.

Conventions:
    Coordinates are rows. A point ``p`` maps to ``p @ linear + translation``.
    The homogeneous 3x3 form stores ``linear`` in the top-left 2x2 block, the
    translation in column 3 (rows 1-2) and ``[0, 0, 1]`` as the bottom row.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any

import numpy as np
from affine import Affine
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, model_validator

from domain.transform.errors import DegenerateScaleError, ShapeMismatchError


def _frozen_copy(values: Any) -> NDArray[np.float64]:
    """Return an owned, contiguous, read-only float64 copy of ``values``."""
    arr = np.array(values, dtype=np.float64, copy=True, order="C")
    arr.flags.writeable = False
    return arr


def coerce_matrix(
    m: Any, error: type[ShapeMismatchError] = ShapeMismatchError
) -> NDArray[np.float64]:
    """Coerce ``m`` to a float64 matrix holding at least a 2x2 linear block.

    Accepts an AffineSpec, an ``affine.Affine`` or anything numpy can turn into
    a 2D numeric array. The returned array is a fresh copy.

    Raises:
        ShapeMismatchError (or ``error``): If no 2x2 block can be read.
    """
    if isinstance(m, AffineSpec):
        return m.matrix
    if isinstance(m, Affine):
        return AffineSpec.from_affine(m).matrix
    try:
        arr = np.array(m, dtype=np.float64, copy=True)
    except (TypeError, ValueError) as e:
        raise error(f"Cannot coerce {type(m).__name__} to a numeric matrix") from e
    if arr.ndim != 2 or arr.shape[0] < 2 or arr.shape[1] < 2:
        raise error(
            f"Expected a matrix with at least 2 rows and 2 columns, got shape {arr.shape}"
        )
    return arr


def require_shape(
    value: Any, shape: tuple[int, ...], what: str
) -> NDArray[np.float64]:
    try:
        arr = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ShapeMismatchError(f"{what} must be numeric") from e
    if arr.shape != shape:
        raise ShapeMismatchError(f"{what} must have shape {shape}, got {arr.shape}")
    return arr


# ---------------------------------------------------------------------------
# AffineSpec
# ---------------------------------------------------------------------------
class AffineSpec(BaseModel):
    """2D affine transform: linear block plus optional translation (Value Object).

    Invariants:
        linear has shape (2, 2)
        translation is None (absent) or has shape (2,)

    Both arrays are copied and made read-only at construction time, so an
    AffineSpec never aliases caller-provided arrays. "Mutation" goes through
    ``with_linear``/``with_translation``, which return a new AffineSpec.
    """

    linear: NDArray[np.float64]  # 2x2 rotation/scale/shear block
    translation: NDArray[np.float64] | None = None  # (tx, ty) or absent

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def validate_spec(self) -> "AffineSpec":
        if np.shape(self.linear) != (2, 2):
            raise ValueError(f"linear must be 2x2, got shape {np.shape(self.linear)}")
        object.__setattr__(self, "linear", _frozen_copy(self.linear))

        if self.translation is not None:
            if np.shape(self.translation) != (2,):
                raise ValueError(
                    f"translation must have 2 elements, got shape {np.shape(self.translation)}"
                )
            object.__setattr__(self, "translation", _frozen_copy(self.translation))
        return self

    # -- constructors -------------------------------------------------------
    @classmethod
    def identity(cls) -> "AffineSpec":
        return cls(linear=np.eye(2))

    @classmethod
    def from_matrix(cls, m: Any) -> "AffineSpec":
        """Build an AffineSpec from a 2x2, 2x3 or 3x3 matrix-like.

        Only the first two rows are read. Column 3, when present, is the
        translation; columns beyond the third are ignored. An AffineSpec is
        returned unchanged and an ``affine.Affine`` is converted.

        Raises:
            ShapeMismatchError: If ``m`` has no readable 2x2 linear block.
        """
        if isinstance(m, AffineSpec):
            return m
        if isinstance(m, Affine):
            return cls.from_affine(m)
        arr = coerce_matrix(m)
        translation = arr[:2, 2] if arr.shape[1] >= 3 else None
        return cls(linear=arr[:2, :2], translation=translation)

    @classmethod
    def from_affine(cls, transform: Affine) -> "AffineSpec":
        """Convert an ``affine.Affine`` (column-vector convention).

        ``Affine(a, b, c, d, e, f)`` maps ``x' = a*x + b*y + c`` and
        ``y' = d*x + e*y + f``; in row form the linear block is its transpose.
        """
        return cls(
            linear=np.array([[transform.a, transform.d], [transform.b, transform.e]]),
            translation=np.array([transform.c, transform.f]),
        )

    def to_affine(self) -> Affine:
        """Return the equivalent ``affine.Affine``."""
        (a, d), (b, e) = self.linear.tolist()
        c, f = self.shift.tolist()
        return Affine(a, b, c, d, e, f)

    # -- views ----------------------------------------------------------------
    @property
    def shift(self) -> NDArray[np.float64]:
        """Translation vector, zeros when absent."""
        if self.translation is None:
            return np.zeros(2)
        return self.translation.copy()

    @property
    def matrix(self) -> NDArray[np.float64]:
        """Homogeneous 3x3 form (new array on every access)."""
        out = np.eye(3)
        out[:2, :2] = self.linear
        out[:2, 2] = self.shift
        return out

    def with_linear(self, value: Any) -> "AffineSpec":
        """Return a copy with the 2x2 linear block replaced.

        Raises:
            ShapeMismatchError: If ``value`` is not 2x2.
        """
        linear = require_shape(value, (2, 2), "linear")
        return AffineSpec(linear=linear, translation=self.translation)

    def with_translation(self, value: Any) -> "AffineSpec":
        """Return a copy with the translation replaced.

        Raises:
            ShapeMismatchError: If ``value`` does not hold exactly 2 numbers.
        """
        translation = require_shape(value, (2,), "translation")
        return AffineSpec(linear=self.linear, translation=translation)


# ---------------------------------------------------------------------------
# Decomposition
# ---------------------------------------------------------------------------
class AxisPair(BaseModel):
    """Per-axis (x, y) values. Non-finite values are allowed."""

    x: float
    y: float

    model_config = ConfigDict(frozen=True)

    def as_array(self) -> NDArray[np.float64]:
        return np.array([self.x, self.y], dtype=np.float64)

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)


class TransformStep(str, Enum):
    """Primitive operations of a decomposed affine transform."""

    ROTATE = "rotate"
    SHEAR = "shear"
    SCALE = "scale"
    TRANSLATE = "translate"


# Canonical application order for every decomposition
DEFAULT_ORDER: tuple[TransformStep, ...] = (
    TransformStep.ROTATE,
    TransformStep.SHEAR,
    TransformStep.SCALE,
    TransformStep.TRANSLATE,
)


class DecompositionResult(BaseModel):
    """Affine matrix expressed as rotate -> shear -> scale -> translate.

    Exactly one shear component is non-zero (or both zero), depending on the
    convention that produced the result. ``affine`` keeps the decomposed
    matrix as 3x3; it is None only for intermediate candidates.

    Composition (column-vector form) is ``S @ H @ R`` with
    ``S = diag(scale.x, scale.y)``, ``H = [[1, shear.x], [shear.y, 1]]`` and
    ``R = [[cos r, sin r], [-sin r, cos r]]``; the row-form linear block is
    its transpose.

    Scale and shear may be negative, zero or non-finite. They are never
    clamped; check ``is_degenerate`` before relying on the components.
    """

    scale: AxisPair
    rotate: float  # radians
    shear: AxisPair
    translate: AxisPair = AxisPair(x=0.0, y=0.0)
    order: tuple[TransformStep, ...] = DEFAULT_ORDER
    affine: NDArray[np.float64] | None = None

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def validate_result(self) -> "DecompositionResult":
        if tuple(self.order) != DEFAULT_ORDER:
            raise ValueError(
                f"order must be {[s.value for s in DEFAULT_ORDER]}, "
                f"got {[TransformStep(s).value for s in self.order]}"
            )
        if self.affine is not None:
            if np.shape(self.affine) != (3, 3):
                raise ValueError(f"affine must be 3x3, got shape {np.shape(self.affine)}")
            object.__setattr__(self, "affine", _frozen_copy(self.affine))
        return self

    @property
    def rotate_degrees(self) -> float:
        return math.degrees(self.rotate)

    @property
    def is_degenerate(self) -> bool:
        """True when a scale is exactly zero or any component is NaN/inf.

        Comparisons are exact: a rank-deficient block whose rounding leaves
        a tiny non-zero scale (e.g. ``[[2, 1], [0, 0]]`` gives scale.x near
        1e-16 and a huge shear) is NOT flagged. Check the magnitudes, or the
        conditioning of the input, when near-singular matrices are expected.
        """
        if not (
            self.scale.is_finite()
            and self.shear.is_finite()
            and math.isfinite(self.rotate)
        ):
            return True
        return self.scale.x == 0 or self.scale.y == 0

    def require_representable(self) -> "DecompositionResult":
        """Return self, or raise DegenerateScaleError if degenerate."""
        if self.is_degenerate:
            raise DegenerateScaleError(
                f"Unrepresentable decomposition: scale=({self.scale.x}, {self.scale.y}), "
                f"shear=({self.shear.x}, {self.shear.y}), rotate={self.rotate}"
            )
        return self

    def _linear_steps(self) -> dict[TransformStep, NDArray[np.float64]]:
        # Row-form (transposed) matrices of each primitive
        c, s = math.cos(self.rotate), math.sin(self.rotate)
        return {
            TransformStep.ROTATE: np.array([[c, -s], [s, c]]),
            TransformStep.SHEAR: np.array([[1.0, self.shear.y], [self.shear.x, 1.0]]),
            TransformStep.SCALE: np.diag([self.scale.x, self.scale.y]),
        }

    def steps(self) -> tuple[tuple[TransformStep, AffineSpec], ...]:
        """Primitive transforms in application order.

        Applying them one after another with ``apply_affine`` is equivalent
        to applying ``compose()`` at once.
        """
        specs = {
            step: AffineSpec(linear=linear)
            for step, linear in self._linear_steps().items()
        }
        specs[TransformStep.TRANSLATE] = AffineSpec(
            linear=np.eye(2), translation=self.translate.as_array()
        )
        return tuple((step, specs[step]) for step in self.order)

    def compose(self) -> NDArray[np.float64]:
        """Rebuild the 3x3 homogeneous matrix from the components."""
        parts = self._linear_steps()
        linear = np.eye(2)
        for step in self.order:
            if step in parts:
                linear = linear @ parts[step]
        out = np.eye(3)
        out[:2, :2] = linear
        out[:2, 2] = self.translate.as_array()
        return out

    def __str__(self) -> str:
        fields = {
            TransformStep.ROTATE: (
                f"{self.rotate:.6g} rad ({self.rotate_degrees:.6g} deg)"
            ),
            TransformStep.SHEAR: f"x={self.shear.x:.6g}, y={self.shear.y:.6g}",
            TransformStep.SCALE: f"x={self.scale.x:.6g}, y={self.scale.y:.6g}",
            TransformStep.TRANSLATE: (
                f"x={self.translate.x:.6g}, y={self.translate.y:.6g}"
            ),
        }
        lines = [
            "affine decomposition (order: "
            + " -> ".join(step.value for step in self.order)
            + ")"
        ]
        lines.extend(f"  {step.value:<9}: {fields[step]}" for step in self.order)
        if self.is_degenerate:
            lines.append("  (degenerate: zero or non-finite component)")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Spatial object coordinates
# ---------------------------------------------------------------------------
class GeometryKind(str, Enum):
    """Kind of spatial object a coordinate batch was extracted from."""

    POINTS = "points"
    POLYGONS = "polygons"
    TABLE = "table"


class CoordinateBatch(BaseModel):
    """Nx2 coordinates extracted from a spatial object, tagged with its kind.

    The coordinate array is an owned read-only float64 copy. N may be 0.
    """

    coords: NDArray[np.float64]
    kind: GeometryKind

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def validate_batch(self) -> "CoordinateBatch":
        if np.ndim(self.coords) != 2 or np.shape(self.coords)[1] != 2:
            raise ValueError(f"coords must be Nx2, got shape {np.shape(self.coords)}")
        object.__setattr__(self, "coords", _frozen_copy(self.coords))
        return self
