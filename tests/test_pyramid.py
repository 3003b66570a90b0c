"""Tests for Gaussian pyramid construction, amplification and collapse."""

import numpy as np
import pytest

from evmagnify.errors import ConfigurationError, DimensionMismatchError
from evmagnify.pyramid import amplify_pyramid, build_gaussian_pyramid, collapse_pyramid


class TestBuildGaussianPyramid:
    """Tests for build_gaussian_pyramid."""

    @pytest.mark.parametrize("n_levels", [1, 2, 3, 4, 6])
    def test_length_and_identity(self, rng, n_levels):
        """Test pyramid has n_levels entries and ends with the input frame."""
        frame = rng.random((64, 48)) * 255.0

        pyramid = build_gaussian_pyramid(frame, n_levels)

        assert len(pyramid) == n_levels
        assert pyramid[-1] is frame
        assert np.array_equal(pyramid[-1], frame)

    def test_coarsest_first_ordering(self, rng):
        """Test levels grow from coarsest to full resolution."""
        frame = rng.random((64, 64))

        pyramid = build_gaussian_pyramid(frame, 4)

        assert [level.shape for level in pyramid] == [
            (8, 8),
            (16, 16),
            (32, 32),
            (64, 64),
        ]

    def test_odd_sizes_round_up(self, rng):
        """Test decimation rounds odd dimensions up."""
        frame = rng.random((65, 33))

        pyramid = build_gaussian_pyramid(frame, 3)

        assert pyramid[1].shape == (33, 17)
        assert pyramid[0].shape == (17, 9)

    def test_input_not_modified(self, rng):
        """Test building a pyramid leaves the frame untouched."""
        frame = rng.random((32, 32))
        original = frame.copy()

        build_gaussian_pyramid(frame, 4)

        assert np.array_equal(frame, original)

    def test_constant_frame_stays_constant(self):
        """Test the binomial blur preserves a constant image."""
        frame = np.full((40, 40), 100.0)

        pyramid = build_gaussian_pyramid(frame, 3)

        for level in pyramid:
            np.testing.assert_allclose(level, 100.0)

    def test_invalid_levels(self, rng):
        """Test n_levels < 1 is rejected."""
        with pytest.raises(ConfigurationError):
            build_gaussian_pyramid(rng.random((8, 8)), 0)

    def test_rejects_color_frame(self, rng):
        """Test a 3-channel frame is rejected."""
        with pytest.raises(DimensionMismatchError):
            build_gaussian_pyramid(rng.random((8, 8, 3)), 2)


class TestAmplifyPyramid:
    """Tests for amplify_pyramid."""

    def test_identity(self, rng):
        """Test alpha = 1 reproduces the pyramid exactly."""
        pyramid = build_gaussian_pyramid(rng.random((32, 32)), 3)

        amplified = amplify_pyramid(pyramid, 1.0)

        assert len(amplified) == len(pyramid)
        for a, p in zip(amplified, pyramid):
            assert np.array_equal(a, p)

    def test_scales_every_level(self, rng):
        """Test every sample is multiplied by alpha."""
        pyramid = build_gaussian_pyramid(rng.random((32, 32)), 3)

        amplified = amplify_pyramid(pyramid, 50.0)

        for a, p in zip(amplified, pyramid):
            np.testing.assert_allclose(a, 50.0 * p)

    def test_input_not_modified(self, rng):
        """Test amplification returns new arrays."""
        pyramid = build_gaussian_pyramid(rng.random((16, 16)), 2)
        originals = [level.copy() for level in pyramid]

        amplify_pyramid(pyramid, 10.0)

        for level, original in zip(pyramid, originals):
            assert np.array_equal(level, original)

    @pytest.mark.parametrize("alpha", [float("nan"), float("inf"), -float("inf")])
    def test_non_finite_alpha(self, rng, alpha):
        """Test non-finite alpha is rejected."""
        pyramid = build_gaussian_pyramid(rng.random((16, 16)), 2)

        with pytest.raises(ConfigurationError):
            amplify_pyramid(pyramid, alpha)


class TestCollapsePyramid:
    """Tests for collapse_pyramid."""

    @pytest.mark.parametrize("shape", [(64, 64), (65, 33), (31, 47)])
    def test_output_shape(self, rng, shape):
        """Test the collapsed frame has full resolution, odd sizes included."""
        pyramid = build_gaussian_pyramid(rng.random(shape), 4)

        collapsed = collapse_pyramid(pyramid)

        assert collapsed.shape == shape
        assert collapsed.dtype == np.float64

    def test_constant_pyramid_returns_constant(self):
        """Test the mean over re-expanded constant levels is the constant."""
        pyramid = build_gaussian_pyramid(np.full((48, 48), 7.5), 4)

        collapsed = collapse_pyramid(pyramid)

        np.testing.assert_allclose(collapsed, 7.5, atol=1e-9)

    def test_single_level_is_copy(self, rng):
        """Test a one-level pyramid collapses to a copy of that level."""
        frame = rng.random((16, 16))

        collapsed = collapse_pyramid([frame])

        assert np.array_equal(collapsed, frame)
        assert collapsed is not frame

    def test_divides_by_level_count(self):
        """Test only the finest level contributing yields level / n_levels."""
        frame = np.full((32, 32), 8.0)
        pyramid = [np.zeros((8, 8)), np.zeros((16, 16)), frame]

        collapsed = collapse_pyramid(pyramid)

        np.testing.assert_allclose(collapsed, 8.0 / 3)

    def test_zero_pyramid(self):
        """Test an all-zero pyramid collapses to zeros."""
        pyramid = [np.zeros((4, 4)), np.zeros((8, 8)), np.zeros((16, 16))]

        collapsed = collapse_pyramid(pyramid)

        assert np.all(collapsed == 0.0)

    def test_empty_pyramid(self):
        """Test an empty pyramid is rejected."""
        with pytest.raises(DimensionMismatchError):
            collapse_pyramid([])
