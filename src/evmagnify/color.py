"""Color-space splitting and per-channel fan-out over independent magnifiers."""

import logging
from concurrent.futures import ThreadPoolExecutor

import cv2
import numpy as np

from .config import VALID_COLOR_SPACES, MagnifierConfig
from .errors import ConfigurationError, DimensionMismatchError
from .magnifier import EvmMagnifier
from .profiling import StageProfiler

logger = logging.getLogger(__name__)


class ColorMagnifier:
    """Magnifies a BGR frame by running one EvmMagnifier per channel.

    The frame is converted to the working color space, split into channels,
    each channel is magnified by its own independent EvmMagnifier, and the
    results are merged and converted back to BGR.

    Color spaces:
    - "ycrcb": luma and both chroma channels (the classic pulse setup).
    - "bgr": the B, G and R channels directly.
    - "gray": luminance only; the output is gray replicated to three
      channels when the input has three.

    With max_workers > 1 the channels of a frame are processed concurrently
    on a thread pool owned by this object. Frames themselves are always
    processed one at a time, in order.
    """

    def __init__(
        self,
        config: MagnifierConfig,
        color_space: str = "ycrcb",
        max_workers: int = 1,
        profiler: StageProfiler | None = None,
    ):
        """Initialize per-channel magnifiers.

        Args:
            config: Parameters shared by every channel magnifier.
            color_space: Working color space ("ycrcb", "bgr" or "gray").
            max_workers: Threads used for channel-level parallelism.
            profiler: Optional stage profiler. Ignored when max_workers > 1,
                since stage timings from concurrent channels would overlap.

        Raises:
            ConfigurationError: If color_space or max_workers is invalid.
        """
        if color_space not in VALID_COLOR_SPACES:
            raise ConfigurationError(
                f"Invalid color space: {color_space!r}. "
                f"Valid color spaces: {VALID_COLOR_SPACES}"
            )
        if max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {max_workers}")

        self.config = config
        self.color_space = color_space
        self.max_workers = max_workers

        if profiler is not None and max_workers > 1:
            logger.warning(
                "Stage profiling is disabled with max_workers=%d", max_workers
            )
            profiler = None

        n_channels = 1 if color_space == "gray" else 3
        self.channels = [
            EvmMagnifier.from_config(config, profiler=profiler)
            for _ in range(n_channels)
        ]
        self._executor: ThreadPoolExecutor | None = None

    def __enter__(self):
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Shut down the worker pool, if any."""
        self.close()

    def close(self) -> None:
        """Shut down the worker pool, if any."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def reset(self) -> None:
        """Reset the temporal state of every channel."""
        for magnifier in self.channels:
            magnifier.reset()
        logger.debug("Reset %d channel magnifier(s)", len(self.channels))

    def _split(self, frame: np.ndarray) -> list[np.ndarray]:
        if self.color_space == "gray":
            if frame.ndim == 3:
                return [cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)]
            return [frame]

        if frame.ndim != 3 or frame.shape[2] != 3:
            raise DimensionMismatchError(
                f"Expected a BGR (H, W, 3) frame for color space "
                f"{self.color_space!r}, got shape {frame.shape}"
            )
        if self.color_space == "ycrcb":
            frame = cv2.cvtColor(frame, cv2.COLOR_BGR2YCrCb)
        return list(cv2.split(frame))

    def _merge(self, channels: list[np.ndarray], input_ndim: int) -> np.ndarray:
        if self.color_space == "gray":
            gray = channels[0]
            if input_ndim == 3:
                return cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)
            return gray

        merged = cv2.merge(channels)
        if self.color_space == "ycrcb":
            merged = cv2.cvtColor(merged, cv2.COLOR_YCrCb2BGR)
        return merged

    def process_frame(self, frame: np.ndarray) -> np.ndarray:
        """Magnify one color (or gray) frame.

        Args:
            frame: BGR frame (H, W, 3) uint8, or (H, W) for "gray".

        Returns:
            Magnified frame with the same shape and dtype as the input.

        Raises:
            DimensionMismatchError: If the frame layout does not match the
                color space or the resolution changed without reset().
        """
        planes = self._split(frame)

        if self.max_workers > 1 and len(planes) > 1:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers, thread_name_prefix="evm-channel"
                )
            outputs = list(
                self._executor.map(
                    lambda pair: pair[0].process_frame(pair[1]),
                    zip(self.channels, planes),
                )
            )
        else:
            outputs = [
                magnifier.process_frame(plane)
                for magnifier, plane in zip(self.channels, planes)
            ]

        return self._merge(outputs, frame.ndim)
