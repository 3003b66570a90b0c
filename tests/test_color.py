"""Tests for ColorMagnifier channel fan-out."""

import cv2
import numpy as np
import pytest

from evmagnify.color import ColorMagnifier
from evmagnify.config import MagnifierConfig
from evmagnify.errors import ConfigurationError, DimensionMismatchError
from evmagnify.magnifier import EvmMagnifier
from evmagnify.profiling import StageProfiler


@pytest.fixture
def config():
    """Default magnifier parameters with a shallow pyramid."""
    return MagnifierConfig(n_levels=3)


def _frames(rng, n=6, shape=(48, 40, 3)):
    return [rng.integers(0, 256, size=shape, dtype=np.uint8) for _ in range(n)]


@pytest.mark.parametrize("color_space", ["ycrcb", "bgr"])
def test_channel_count(config, color_space):
    """Test three independent magnifiers for color spaces with three channels."""
    magnifier = ColorMagnifier(config, color_space=color_space)

    assert len(magnifier.channels) == 3
    assert len({id(m) for m in magnifier.channels}) == 3


def test_gray_single_channel(config):
    """Test gray mode uses one magnifier."""
    magnifier = ColorMagnifier(config, color_space="gray")

    assert len(magnifier.channels) == 1


@pytest.mark.parametrize("color_space", ["ycrcb", "bgr", "gray"])
def test_shape_and_dtype_preserved(config, bgr_frame, color_space):
    """Test the output has the input's layout."""
    magnifier = ColorMagnifier(config, color_space=color_space)

    out = magnifier.process_frame(bgr_frame)

    assert out.shape == bgr_frame.shape
    assert out.dtype == np.uint8


def test_gray_accepts_2d(config, gray_frame):
    """Test gray mode passes single-channel frames through as 2-D."""
    magnifier = ColorMagnifier(config, color_space="gray")

    out = magnifier.process_frame(gray_frame)

    assert out.shape == gray_frame.shape


def test_bgr_first_frame_unchanged(config, bgr_frame):
    """Test the seeding frame is reproduced exactly in BGR mode."""
    magnifier = ColorMagnifier(config, color_space="bgr")

    out = magnifier.process_frame(bgr_frame)

    assert np.array_equal(out, bgr_frame)


def test_bgr_matches_per_channel_magnifiers(config, rng):
    """Test BGR mode equals running one EvmMagnifier per channel by hand."""
    magnifier = ColorMagnifier(config, color_space="bgr")
    references = [EvmMagnifier.from_config(config) for _ in range(3)]

    for frame in _frames(rng):
        out = magnifier.process_frame(frame)
        expected = np.dstack(
            [references[c].process_frame(frame[:, :, c]) for c in range(3)]
        )
        assert np.array_equal(out, expected)


def test_ycrcb_matches_manual_conversion(config, rng):
    """Test YCrCb mode converts, magnifies each plane and converts back."""
    magnifier = ColorMagnifier(config, color_space="ycrcb")
    references = [EvmMagnifier.from_config(config) for _ in range(3)]

    for frame in _frames(rng):
        out = magnifier.process_frame(frame)
        ycc = cv2.cvtColor(frame, cv2.COLOR_BGR2YCrCb)
        planes = [references[c].process_frame(ycc[:, :, c]) for c in range(3)]
        expected = cv2.cvtColor(np.dstack(planes), cv2.COLOR_YCrCb2BGR)
        assert np.array_equal(out, expected)


def test_parallel_matches_sequential(config, rng):
    """Test channel-level threading gives the same result as sequential."""
    frames = _frames(rng, n=8)

    sequential = ColorMagnifier(config, color_space="ycrcb", max_workers=1)
    with ColorMagnifier(config, color_space="ycrcb", max_workers=3) as parallel:
        for frame in frames:
            assert np.array_equal(
                parallel.process_frame(frame), sequential.process_frame(frame)
            )

    assert parallel._executor is None


def test_reset_resets_every_channel(config, rng):
    """Test reset() re-seeds all channels."""
    magnifier = ColorMagnifier(config, color_space="bgr")
    for frame in _frames(rng):
        magnifier.process_frame(frame)

    magnifier.reset()

    assert all(m.frames_processed == 0 for m in magnifier.channels)
    frame = _frames(rng, n=1)[0]
    assert np.array_equal(magnifier.process_frame(frame), frame)


def test_rejects_gray_frame_in_color_mode(config, gray_frame):
    """Test a 2-D frame is rejected for three-channel color spaces."""
    magnifier = ColorMagnifier(config, color_space="ycrcb")

    with pytest.raises(DimensionMismatchError):
        magnifier.process_frame(gray_frame)


def test_invalid_color_space(config):
    """Test an unknown color space is rejected."""
    with pytest.raises(ConfigurationError, match="color space"):
        ColorMagnifier(config, color_space="hsv")


def test_invalid_workers(config):
    """Test max_workers < 1 is rejected."""
    with pytest.raises(ConfigurationError):
        ColorMagnifier(config, max_workers=0)


def test_profiler_dropped_when_parallel(config):
    """Test profiling is disabled for concurrent channels."""
    magnifier = ColorMagnifier(config, max_workers=3, profiler=StageProfiler())

    assert all(m.profiler is None for m in magnifier.channels)
