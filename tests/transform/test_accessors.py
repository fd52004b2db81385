"""Tests for the matrix field accessors (linear block and translation)."""

from __future__ import annotations

import numpy as np
import pytest
from affine import Affine

from domain.transform.errors import ShapeMismatchError
from domain.transform.services import (
    affine_linear,
    affine_shift,
    apply_affine,
    with_affine_linear,
    with_affine_shift,
)
from domain.transform.value_objects import AffineSpec
from tests.conftest import AFFINE_M


# ===========================================================================
# Getters
# ===========================================================================
def test_linear_of_raw_matrix(affine_m):
    linear = affine_linear(affine_m)
    linear[0, 0] = 99.0

    np.testing.assert_array_equal(affine_linear(affine_m), [[2.0, 0.5], [-0.3, 3.0]])
    assert affine_m[0, 0] == 2.0


def test_linear_of_spec_is_writable_copy():
    spec = AffineSpec.from_matrix(AFFINE_M)

    linear = affine_linear(spec)
    linear[1, 1] = 0.0

    assert spec.linear[1, 1] == 3.0


def test_shift_of_raw_matrix():
    np.testing.assert_array_equal(affine_shift(AFFINE_M), [1000.0, 20.0])
    np.testing.assert_array_equal(affine_shift([[1, 0, 5], [0, 1, 6]]), [5.0, 6.0])


def test_shift_of_spec_defaults_to_zero():
    np.testing.assert_array_equal(affine_shift(AffineSpec.identity()), [0.0, 0.0])


def test_shift_of_2x2_matrix_raises():
    with pytest.raises(ShapeMismatchError):
        affine_shift(np.eye(2))


def test_linear_of_affine_library_transform():
    np.testing.assert_array_equal(
        affine_linear(Affine(1.0, 2.0, 3.0, 4.0, 5.0, 6.0)), [[1.0, 4.0], [2.0, 5.0]]
    )


# ===========================================================================
# Setters
# ===========================================================================
def test_with_linear_on_raw_matrix_keeps_other_entries(affine_m):
    out = with_affine_linear(affine_m, [[1.0, 0.0], [0.0, 1.0]])

    np.testing.assert_array_equal(out[:2, :2], np.eye(2))
    np.testing.assert_array_equal(out[:, 2], affine_m[:, 2])
    np.testing.assert_array_equal(out[2], [100.0, 29.0, 1.0])
    # input untouched
    assert affine_m[0, 0] == 2.0


def test_with_shift_on_raw_matrix(affine_m):
    out = with_affine_shift(affine_m, [-1.0, -2.0])

    np.testing.assert_array_equal(out[:2, 2], [-1.0, -2.0])
    np.testing.assert_array_equal(out[:2, :2], affine_m[:2, :2])
    np.testing.assert_array_equal(affine_m[:2, 2], [1000.0, 20.0])


def test_with_shift_on_2x2_adds_column():
    out = with_affine_shift(np.diag([2.0, 3.0]), [4.0, 5.0])

    np.testing.assert_array_equal(out, [[2.0, 0.0, 4.0], [0.0, 3.0, 5.0]])


def test_setters_on_spec_return_specs():
    spec = AffineSpec.from_matrix(AFFINE_M)

    moved = with_affine_shift(spec, [1.0, 2.0])
    scaled = with_affine_linear(spec, np.diag([4.0, 4.0]))

    assert isinstance(moved, AffineSpec)
    assert isinstance(scaled, AffineSpec)
    np.testing.assert_array_equal(moved.translation, [1.0, 2.0])
    np.testing.assert_array_equal(scaled.linear, np.diag([4.0, 4.0]))
    np.testing.assert_array_equal(spec.translation, [1000.0, 20.0])


def test_setters_on_affine_library_transform():
    transform = Affine.translation(3.0, 4.0)

    moved = with_affine_shift(transform, [7.0, 8.0])
    scaled = with_affine_linear(transform, np.diag([2.0, 2.0]))

    assert isinstance(moved, Affine)
    assert (moved.c, moved.f) == (7.0, 8.0)
    assert (scaled.a, scaled.e, scaled.c, scaled.f) == (2.0, 2.0, 3.0, 4.0)


def test_setter_output_applies_like_spec(sample_coords):
    """Setting the shift on a raw matrix or its AffineSpec is equivalent."""
    raw = with_affine_shift(AFFINE_M, [5.0, 5.0])
    spec = with_affine_shift(AffineSpec.from_matrix(AFFINE_M), [5.0, 5.0])

    np.testing.assert_array_equal(
        apply_affine(sample_coords, raw), apply_affine(sample_coords, spec)
    )


@pytest.mark.parametrize("value", [np.eye(3), [1.0, 2.0, 3.0, 4.0], [[1.0, 2.0]]])
def test_with_linear_rejects_bad_value(value):
    with pytest.raises(ShapeMismatchError):
        with_affine_linear(AFFINE_M, value)


@pytest.mark.parametrize("value", [[1.0], [1.0, 2.0, 3.0], np.zeros((2, 1))])
def test_with_shift_rejects_bad_value(value):
    for target in (AFFINE_M, AffineSpec.identity(), Affine.identity()):
        with pytest.raises(ShapeMismatchError):
            with_affine_shift(target, value)
