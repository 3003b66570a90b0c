"""Per-channel Eulerian video magnification pipeline."""

import logging
import math
from contextlib import nullcontext

import numpy as np

from .config import MagnifierConfig, load_magnifier_config
from .errors import ConfigurationError, DimensionMismatchError
from .filters import butter_lowpass
from .profiling import StageProfiler
from .pyramid import amplify_pyramid, build_gaussian_pyramid, collapse_pyramid
from .temporal import TemporalBandpassFilter

logger = logging.getLogger(__name__)

# Order of the two lowpass filters whose difference forms the band-pass
FILTER_ORDER = 1

# Clamp bounds for floating frames when no explicit range is given
FLOAT_FRAME_RANGE = (0.0, 255.0)


def frame_value_range(
    dtype: np.dtype, value_range: tuple[float, float] | None = None
) -> tuple[float, float]:
    """Output clamp bounds for a frame dtype.

    An explicit ``value_range`` always wins. Otherwise integer frames use the
    dtype's full range and floating frames use FLOAT_FRAME_RANGE, since they
    are widened without rescaling.

    Args:
        dtype: Frame dtype.
        value_range: Optional explicit (low, high) bounds.

    Returns:
        (low, high) clamp bounds.

    Raises:
        TypeError: If the dtype is neither integer nor floating.
    """
    dtype = np.dtype(dtype)
    if not (np.issubdtype(dtype, np.integer) or np.issubdtype(dtype, np.floating)):
        raise TypeError(f"Unsupported frame dtype: {dtype}")
    if value_range is not None:
        return float(value_range[0]), float(value_range[1])
    if np.issubdtype(dtype, np.integer):
        info = np.iinfo(dtype)
        return float(info.min), float(info.max)
    return FLOAT_FRAME_RANGE


class EvmMagnifier:
    """Magnifies periodic intensity changes in one channel of a video.

    Each frame is decomposed into a Gaussian pyramid, band-pass filtered over
    time at every level, amplified, collapsed back to full resolution and
    added onto the frame. The temporal filter keeps one frame of state per
    pyramid level, so frames must arrive in capture order; call reset() after
    a gap or a resolution change.

    One instance serves one channel. Instances share nothing, so separate
    channels may be processed on separate threads, but a single instance must
    not be used concurrently.

    Example:
        magnifier = EvmMagnifier(alpha=50, fl=1.0, fh=1.667, n_levels=4, fps=30)
        for frame in frames:
            out = magnifier.process_frame(frame)
    """

    def __init__(
        self,
        alpha: float = 50.0,
        fl: float = 60 / 60.0,
        fh: float = 100 / 60.0,
        n_levels: int = 4,
        fps: float = 30.0,
        attenuation: float = 1.0,
        profiler: StageProfiler | None = None,
        value_range: tuple[float, float] | None = None,
    ):
        """Initialize the magnifier.

        Args:
            alpha: Amplification factor.
            fl: Low cutoff frequency (Hz).
            fh: High cutoff frequency (Hz).
            n_levels: Gaussian pyramid depth.
            fps: Frame rate (Hz).
            attenuation: Weight of the magnified delta in the output.
            profiler: Optional stage profiler.
            value_range: Output clamp bounds (low, high). None uses the
                dtype's range for integer frames and FLOAT_FRAME_RANGE for
                floating frames.

        Raises:
            ConfigurationError: If the parameters are invalid.
        """
        self.config = load_magnifier_config(
            {
                "alpha": alpha,
                "fl": fl,
                "fh": fh,
                "n_levels": n_levels,
                "fps": fps,
                "attenuation": attenuation,
            }
        )
        if value_range is not None:
            try:
                low, high = (float(v) for v in value_range)
            except (TypeError, ValueError):
                raise ConfigurationError(
                    f"value_range must be a (low, high) pair, got {value_range!r}"
                ) from None
            if not (math.isfinite(low) and math.isfinite(high)) or low >= high:
                raise ConfigurationError(
                    f"value_range must be finite with low < high, got {value_range!r}"
                )
            value_range = (low, high)
        self.value_range = value_range
        self.profiler = profiler

        low = butter_lowpass(FILTER_ORDER, self.config.low_cutoff)
        high = butter_lowpass(FILTER_ORDER, self.config.high_cutoff)
        self.filter = TemporalBandpassFilter(low, high, self.config.n_levels)
        self.frames_processed = 0

        logger.debug(
            "EvmMagnifier initialized: alpha=%s, fl=%s, fh=%s, n_levels=%d, "
            "fps=%s, attenuation=%s",
            self.config.alpha,
            self.config.fl,
            self.config.fh,
            self.config.n_levels,
            self.config.fps,
            self.config.attenuation,
        )

    @classmethod
    def from_config(
        cls,
        config: MagnifierConfig,
        profiler: StageProfiler | None = None,
        value_range: tuple[float, float] | None = None,
    ) -> "EvmMagnifier":
        """Create a magnifier from a MagnifierConfig.

        Args:
            config: Magnifier parameters.
            profiler: Optional stage profiler.
            value_range: Optional output clamp bounds.

        Returns:
            New EvmMagnifier.
        """
        return cls(
            alpha=config.alpha,
            fl=config.fl,
            fh=config.fh,
            n_levels=config.n_levels,
            fps=config.fps,
            attenuation=config.attenuation,
            profiler=profiler,
            value_range=value_range,
        )

    def _stage(self, name: str):
        if self.profiler is None:
            return nullcontext()
        return self.profiler.stage(name)

    def reset(self) -> None:
        """Clear temporal state; the next frame re-seeds the filter."""
        self.filter.reset()
        self.frames_processed = 0

    def process_frame(self, frame: np.ndarray) -> np.ndarray:
        """Magnify one frame.

        Args:
            frame: Single-channel frame (H, W) of integer or floating dtype.

        Returns:
            Magnified frame with the same shape and dtype, clamped to
            value_range (or the default range for the dtype).

        Raises:
            DimensionMismatchError: If the frame is not 2-D or its resolution
                differs from the frame that seeded the filter.
        """
        frame = np.asarray(frame)
        if frame.ndim != 2:
            raise DimensionMismatchError(
                f"Expected a single-channel (H, W) frame, got shape {frame.shape}"
            )
        low, high = frame_value_range(frame.dtype, self.value_range)

        float_frame = frame.astype(np.float64)

        with self._stage("pyramid"):
            pyramid = build_gaussian_pyramid(float_frame, self.config.n_levels)
        with self._stage("temporal"):
            bandpassed = self.filter.apply(pyramid)
        with self._stage("amplify"):
            amplified = amplify_pyramid(bandpassed, self.config.alpha)
        with self._stage("collapse"):
            delta = collapse_pyramid(amplified)
        with self._stage("recombine"):
            reconstructed = float_frame + self.config.attenuation * delta
            np.clip(reconstructed, low, high, out=reconstructed)
            if np.issubdtype(frame.dtype, np.integer):
                np.rint(reconstructed, out=reconstructed)
            output = reconstructed.astype(frame.dtype)

        self.frames_processed += 1
        return output
