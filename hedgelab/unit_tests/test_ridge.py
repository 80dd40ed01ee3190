"""
Ridge Least-Squares Tests
=========================

Tests for the hedge optimizer's least-squares solve:
- Normal-equation assembly with a ridge on the diagonal
- Exact recovery of consistent systems as the ridge vanishes
- Singularity detection for collinear hedgers and ridge rescue
- Precondition violations reported as error kinds, not exceptions
"""

import logging

import numpy as np
import pytest

from hedgelab.engine.errors import ErrorKind, PreconditionViolation, SingularSystemError
from hedgelab.engine.ridge import normal_equations, ridge_least_squares


@pytest.fixture
def well_conditioned() -> np.ndarray:
    """4 x 2 design matrix with independent columns."""
    return np.array([
        [1.0, 0.0],
        [0.0, 1.0],
        [1.0, 1.0],
        [2.0, -1.0],
    ])


@pytest.fixture
def duplicate_columns() -> np.ndarray:
    """Two identical hedgers: A^T A is exactly singular without a ridge."""
    return np.array([
        [1.0, 1.0],
        [2.0, 2.0],
        [3.0, 3.0],
    ])


# =============================================================================
# Normal Equations
# =============================================================================

class TestNormalEquations:
    """Tests for (A^T A + lambda I, A^T b) assembly."""

    def test_values(self):
        A = [[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]]
        AtA, Atb = normal_equations(A, [1.0, 1.0, 1.0], ridge_lambda=0.5)

        np.testing.assert_allclose(AtA, [[35.5, 44.0], [44.0, 56.5]])
        np.testing.assert_allclose(Atb, [9.0, 12.0])

    def test_symmetric(self):
        rng = np.random.default_rng(3)
        A = rng.normal(size=(6, 4))

        AtA, _ = normal_equations(A, np.ones(6), ridge_lambda=0.0)

        np.testing.assert_array_equal(AtA, AtA.T)

    def test_ridge_only_on_diagonal(self):
        A = np.eye(3)
        AtA, _ = normal_equations(A, np.zeros(3), ridge_lambda=2.0)

        np.testing.assert_array_equal(AtA, 3.0 * np.eye(3))


# =============================================================================
# Solutions
# =============================================================================

class TestRidgeLeastSquares:
    """Tests for successful solves."""

    def test_exact_recovery_as_ridge_vanishes(self, well_conditioned):
        """For b = A w_true the error shrinks with the ridge term."""
        w_true = np.array([1.5, -0.5])
        b = well_conditioned @ w_true

        errors = []
        for ridge in (1e-2, 1e-5, 1e-12):
            w = ridge_least_squares(well_conditioned, b, ridge_lambda=ridge).unwrap()
            errors.append(np.linalg.norm(w - w_true))

        assert errors[0] > errors[1] > errors[2]
        assert errors[2] < 1e-9

    def test_zero_ridge_on_full_rank_matrix(self, well_conditioned):
        w_true = np.array([0.25, 2.0])
        result = ridge_least_squares(well_conditioned, well_conditioned @ w_true, ridge_lambda=0.0)

        assert result.ok
        np.testing.assert_allclose(result.value, w_true, atol=1e-12)

    def test_matches_numpy_lstsq(self):
        rng = np.random.default_rng(7)
        A = rng.normal(size=(6, 3))
        b = rng.normal(size=6)

        w = ridge_least_squares(A, b, ridge_lambda=1e-12).unwrap()
        expected, *_ = np.linalg.lstsq(A, b, rcond=None)

        np.testing.assert_allclose(w, expected, atol=1e-8)

    @pytest.mark.parametrize("ridge", [1e-8, 1e-3, 1.0])
    def test_full_rank_with_positive_ridge_always_solves(self, ridge):
        rng = np.random.default_rng(42)
        for _ in range(20):
            A = rng.normal(size=(6, 3))
            b = rng.normal(size=6)

            assert ridge_least_squares(A, b, ridge_lambda=ridge).ok

    def test_zero_column_is_held_at_zero(self):
        """A hedger with no key-rate exposure gets zero weight under the ridge."""
        A = np.array([[0.0, 1.0], [0.0, 2.0]])
        w = ridge_least_squares(A, [1.0, 2.0], ridge_lambda=1e-8).unwrap()

        assert w[0] == 0.0
        assert w[1] == pytest.approx(1.0, rel=1e-6)

    def test_default_ridge_rescues_duplicate_columns(self, duplicate_columns):
        result = ridge_least_squares(duplicate_columns, [1.0, 2.0, 3.0])

        assert result.ok

    def test_weights_are_read_only(self, well_conditioned):
        w = ridge_least_squares(well_conditioned, np.ones(4)).unwrap()

        with pytest.raises(ValueError):
            w[0] = 1.0

    def test_inputs_are_not_mutated(self, well_conditioned):
        b = np.ones(4)
        A_before = well_conditioned.copy()

        ridge_least_squares(well_conditioned, b)

        np.testing.assert_array_equal(well_conditioned, A_before)
        np.testing.assert_array_equal(b, np.ones(4))


# =============================================================================
# Failures
# =============================================================================

class TestRidgeFailures:
    """Tests for error kinds returned instead of raised."""

    def test_duplicate_columns_without_ridge_are_singular(self, duplicate_columns):
        result = ridge_least_squares(duplicate_columns, [1.0, 2.0, 3.0], ridge_lambda=0.0)

        assert not result.ok
        assert result.error is ErrorKind.SINGULAR_SYSTEM
        assert result.value is None
        assert "ill-conditioned" in result.message

    def test_small_ridge_makes_duplicate_columns_solvable(self, duplicate_columns):
        result = ridge_least_squares(duplicate_columns, [1.0, 2.0, 3.0], ridge_lambda=1e-6)

        assert result.ok
        # b equals either column, so the ridge splits the weight evenly
        np.testing.assert_allclose(result.value, [0.5, 0.5], rtol=1e-4)

    def test_singular_unwrap_raises(self, duplicate_columns):
        result = ridge_least_squares(duplicate_columns, [1.0, 2.0, 3.0], ridge_lambda=0.0)

        with pytest.raises(SingularSystemError):
            result.unwrap()

    def test_singular_is_logged(self, duplicate_columns, caplog):
        with caplog.at_level(logging.WARNING, logger="HedgeLab.Ridge"):
            ridge_least_squares(duplicate_columns, [1.0, 2.0, 3.0], ridge_lambda=0.0)

        assert "singular_system" in caplog.text

    def test_target_length_mismatch(self, well_conditioned):
        result = ridge_least_squares(well_conditioned, [1.0, 2.0, 3.0])

        assert result.error is ErrorKind.PRECONDITION_VIOLATION
        assert "b length must match A rows" in result.message
        with pytest.raises(PreconditionViolation):
            result.unwrap()

    @pytest.mark.parametrize("ridge", [-1e-8, float("inf"), "1e-8"])
    def test_invalid_ridge_rejected(self, well_conditioned, ridge):
        result = ridge_least_squares(well_conditioned, np.ones(4), ridge_lambda=ridge)

        assert result.error is ErrorKind.PRECONDITION_VIOLATION

    @pytest.mark.parametrize("A", [
        [],
        [1.0, 2.0],
        np.zeros((3, 0)),
        [[1.0, 2.0], [3.0]],
        [["a", "b"], ["c", "d"]],
    ])
    def test_malformed_design_matrix(self, A):
        result = ridge_least_squares(A, [1.0, 2.0])

        assert result.error is ErrorKind.PRECONDITION_VIOLATION
