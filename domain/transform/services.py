"""Transform Bounded Context - Domain Services.

Pure numeric logic for applying and decomposing 2D affine transforms.
NO geometry handling - concrete spatial objects are reached through the
SpatialObjectGateway port, implemented by adapters under
`src/infrastructure/spatial/`.

Decomposition follows the closed form from
https://math.stackexchange.com/a/3521141, evaluated for both shear
conventions and picking the simpler result.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np
from affine import Affine
from numpy.typing import ArrayLike, NDArray

from domain.transform.errors import (
    InvalidDimensionsError,
    ShapeMismatchError,
    SingularMatrixError,
)
from domain.transform.ports import SpatialObjectGateway
from domain.transform.value_objects import (
    AffineSpec,
    AxisPair,
    CoordinateBatch,
    DecompositionResult,
    coerce_matrix,
    require_shape,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
# Two unit scales + two zero shears + zero rotation
SIMPLICITY_MAX_SCORE = 5

# Reciprocal condition number below this is "computationally singular"
_RCOND_MIN = float(np.finfo(np.float64).eps)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _as_coords(coords: ArrayLike) -> NDArray[np.float64]:
    """Return a float64 copy of ``coords``, which must be Nx2."""
    try:
        xm = np.array(coords, dtype=np.float64, copy=True)
    except (TypeError, ValueError) as e:
        raise ShapeMismatchError("Coordinates must be numeric") from e
    if xm.ndim != 2 or xm.shape[1] != 2:
        raise ShapeMismatchError(
            f"Coordinates must be an Nx2 array, got shape {xm.shape}"
        )
    return xm


def invert_linear(linear: ArrayLike) -> NDArray[np.float64]:
    """Invert a 2x2 linear block.

    The block counts as singular when it holds NaN/inf or its 1-norm
    reciprocal condition number falls below machine epsilon.

    Raises:
        SingularMatrixError: If the block cannot be inverted
    """
    a = np.asarray(linear, dtype=np.float64)
    if not np.all(np.isfinite(a)):
        raise SingularMatrixError(a)
    rcond = 1.0 / np.linalg.cond(a, p=1)
    if not rcond >= _RCOND_MIN:
        raise SingularMatrixError(a)
    try:
        return np.linalg.inv(a)
    except np.linalg.LinAlgError as e:
        raise SingularMatrixError(a) from e


def _homogeneous(x: NDArray[np.float64]) -> NDArray[np.float64]:
    """Return ``x`` as 3x3, appending a zero shift and [0, 0, 1] if missing."""
    if x.shape[0] >= 3 and x.shape[1] >= 3:
        return x[:3, :3].copy()
    out = np.eye(3)
    ncol = min(x.shape[1], 3)
    out[:2, :ncol] = x[:2, :ncol]
    return out


# ---------------------------------------------------------------------------
# Transform Applier
# ---------------------------------------------------------------------------
def apply_affine(
    coords: ArrayLike, m: Any, inverse: bool = False
) -> NDArray[np.float64]:
    """Apply an affine transform, or its exact inverse, to Nx2 coordinates.

    Each coordinate is a row vector. The forward transform is
    ``y = x @ A + t``; the inverse is ``x = (y - t) @ inv(A)``, so the
    translation is removed BEFORE the inverted linear map is applied.

    A translation of exactly (0, 0) is skipped, same as no translation.

    Args:
        coords: Nx2 array-like (N may be 0). Not modified.
        m: AffineSpec, ``affine.Affine`` or 2x2 / 2x3 / 3x3 matrix-like
        inverse: Apply the inverse transform instead

    Returns:
        New Nx2 float64 array

    Raises:
        ShapeMismatchError: If coords are not Nx2 or ``m`` has no 2x2 block
        SingularMatrixError: If ``inverse`` and the linear block is singular

    Example:
        >>> apply_affine([[1.0, 1.0]], [[2, 0, 10], [0, 3, 20]])
        array([[12., 23.]])
    """
    spec = AffineSpec.from_matrix(m)
    xm = _as_coords(coords)

    # Translations (if any)
    translation = spec.translation
    if translation is not None:
        if inverse:
            translation = -translation
        if np.all(translation == 0):
            translation = None

    # Resolve the linear map before touching coordinates
    linear = invert_linear(spec.linear) if inverse else spec.linear

    if translation is not None and inverse:
        xm = xm + translation

    xm = xm @ linear

    if translation is not None and not inverse:
        xm = xm + translation

    logger.debug(
        "Applied %s affine to %d coordinates",
        "inverse" if inverse else "forward",
        xm.shape[0],
    )
    return xm


# ---------------------------------------------------------------------------
# Affine Decomposer
# ---------------------------------------------------------------------------
def decompose_yshear(
    a11: float, a21: float, a12: float, a22: float
) -> DecompositionResult:
    """Decompose a linear block, carrying the shear on the y axis.

    Divisions follow IEEE semantics: a zero derived scale yields an
    infinite or NaN shear instead of raising.
    """
    a11, a21, a12, a22 = (np.float64(v) for v in (a11, a21, a12, a22))
    with np.errstate(divide="ignore", invalid="ignore"):
        sx = np.sqrt(a11**2 + a21**2)  # scale x
        r = np.arctan(a21 / a11)  # rotation
        msy = a12 * np.cos(r) + a22 * np.sin(r)
        if np.sin(r) != 0:  # scale y
            sy = (msy * np.cos(r) - a12) / np.sin(r)
        else:
            sy = (a22 - msy * np.sin(r)) / np.cos(r)
        shear_y = msy / sy

    return DecompositionResult(
        scale=AxisPair(x=sx, y=sy),
        rotate=r,
        shear=AxisPair(x=0.0, y=shear_y),
    )


def decompose_xshear(
    a11: float, a21: float, a12: float, a22: float
) -> DecompositionResult:
    """Decompose a linear block, carrying the shear on the x axis."""
    a11, a21, a12, a22 = (np.float64(v) for v in (a11, a21, a12, a22))
    with np.errstate(divide="ignore", invalid="ignore"):
        sy = np.sqrt(a12**2 + a22**2)  # scale y
        r = np.arctan(-(a12 / a22))  # rotation
        msx = a21 * np.cos(r) - a11 * np.sin(r)
        if np.sin(r) != 0:  # scale x
            sx = (a21 - msx * np.cos(r)) / np.sin(r)
        else:
            sx = (a11 + msx * np.sin(r)) / np.cos(r)
        shear_x = msx / sx

    return DecompositionResult(
        scale=AxisPair(x=sx, y=sy),
        rotate=r,
        shear=AxisPair(x=shear_x, y=0.0),
    )


def simplicity_score(result: DecompositionResult) -> int:
    """Count components sitting at their identity value.

    One point per unit scale, per zero shear and for a zero rotation, using
    exact comparisons (NaN never scores). Maximum is SIMPLICITY_MAX_SCORE.
    """
    score = 0
    score += int(np.count_nonzero(result.scale.as_array() == 1))
    score += int(np.count_nonzero(result.shear.as_array() == 0))
    score += int(result.rotate == 0)
    return score


def decompose_affine(m: Any) -> DecompositionResult:
    """Decompose a 2x3 or 3x3 affine matrix into rotate/shear/scale/translate.

    Both the x-shear and y-shear decompositions are computed; the y-shear one
    is used only when its simplicity score is strictly higher, otherwise the
    x-shear one is kept. The translation column (if any) becomes
    ``translate`` and the input, augmented to 3x3 when needed, is kept as
    ``affine``.

    Degenerate matrices (a zero-scale axis) are not rejected: the
    non-finite components pass through and ``is_degenerate`` is set.

    Args:
        m: AffineSpec, ``affine.Affine`` or matrix-like with >= 2 rows and cols

    Returns:
        DecompositionResult with ``affine`` populated

    Raises:
        InvalidDimensionsError: If ``m`` has no 2x2 linear block
    """
    x = coerce_matrix(m, error=InvalidDimensionsError)

    a11 = x[0, 0]
    a21 = x[1, 0]
    a12 = x[0, 1]
    a22 = x[1, 1]

    res_x = decompose_xshear(a11, a21, a12, a22)
    res_y = decompose_yshear(a11, a21, a12, a22)

    score_x = simplicity_score(res_x)
    score_y = simplicity_score(res_y)

    res = res_y if score_y > score_x else res_x
    logger.debug(
        "Decomposition scores xshear=%d yshear=%d, using %s",
        score_x,
        score_y,
        "yshear" if res is res_y else "xshear",
    )

    # Apply xy translations
    shift = x[:2, 2] if x.shape[1] >= 3 else np.zeros(2)
    translate = res.translate.as_array() + shift

    result = DecompositionResult(
        scale=res.scale,
        rotate=res.rotate,
        shear=res.shear,
        translate=AxisPair(x=translate[0], y=translate[1]),
        order=res.order,
        affine=_homogeneous(x),
    )
    if result.is_degenerate:
        logger.warning(
            "Degenerate affine decomposition: scale=(%s, %s), shear=(%s, %s)",
            result.scale.x,
            result.scale.y,
            result.shear.x,
            result.shear.y,
        )
    return result


# ---------------------------------------------------------------------------
# Matrix field accessors
# ---------------------------------------------------------------------------
def affine_linear(x: Any) -> NDArray[np.float64]:
    """Return a copy of the 2x2 linear block of a matrix or AffineSpec."""
    if isinstance(x, AffineSpec):
        return x.linear.copy()
    return coerce_matrix(x)[:2, :2].copy()


def affine_shift(x: Any) -> NDArray[np.float64]:
    """Return the translation of a matrix or AffineSpec.

    Raises:
        ShapeMismatchError: If a raw matrix has no third column
    """
    if isinstance(x, AffineSpec):
        return x.shift
    arr = coerce_matrix(x)
    if arr.shape[1] < 3:
        raise ShapeMismatchError(
            f"Matrix with {arr.shape[1]} columns has no translation column"
        )
    return arr[:2, 2].copy()


def with_affine_linear(x: Any, value: ArrayLike) -> Any:
    """Return ``x`` with its 2x2 linear block replaced by ``value``.

    AffineSpec and ``affine.Affine`` inputs give the same type back; raw
    matrices give a new float64 array. ``x`` is never modified.

    Raises:
        ShapeMismatchError: If ``value`` is not 2x2
    """
    if isinstance(x, AffineSpec):
        return x.with_linear(value)
    if isinstance(x, Affine):
        return AffineSpec.from_affine(x).with_linear(value).to_affine()
    linear = require_shape(value, (2, 2), "linear")
    out = coerce_matrix(x)
    out[:2, :2] = linear
    return out


def with_affine_shift(x: Any, value: ArrayLike) -> Any:
    """Return ``x`` with its translation replaced by ``value``.

    A raw matrix with only two columns gains a third one.

    Raises:
        ShapeMismatchError: If ``value`` does not hold exactly 2 numbers
    """
    if isinstance(x, AffineSpec):
        return x.with_translation(value)
    if isinstance(x, Affine):
        return AffineSpec.from_affine(x).with_translation(value).to_affine()
    shift = require_shape(value, (2,), "translation")
    out = coerce_matrix(x)
    if out.shape[1] < 3:
        out = np.hstack([out, np.zeros((out.shape[0], 1))])
    out[:2, 2] = shift
    return out


# ---------------------------------------------------------------------------
# Spatial objects
# ---------------------------------------------------------------------------
def affine_object(
    obj: Any, m: Any, gateway: SpatialObjectGateway, inverse: bool = False
) -> Any:
    """Apply an affine transform to a spatial object through its gateway.

    The object's coordinates are extracted (with their geometry kind),
    transformed by ``apply_affine`` and handed back to the gateway to
    rebuild an object of the same kind.

    Raises:
        ShapeMismatchError: If ``m`` has no 2x2 block (checked before extraction)
        SingularMatrixError: If ``inverse`` and the linear block is singular
    """
    spec = AffineSpec.from_matrix(m)
    batch = gateway.extract(obj)
    coords = apply_affine(batch.coords, spec, inverse=inverse)
    logger.debug(
        "Transformed %d coordinates of kind %s", coords.shape[0], batch.kind.value
    )
    return gateway.rebuild(obj, CoordinateBatch(coords=coords, kind=batch.kind))
