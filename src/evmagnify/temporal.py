"""Streaming temporal band-pass filtering of pyramid levels."""

import logging
from dataclasses import dataclass
from enum import Enum

import numpy as np

from .errors import ConfigurationError, DimensionMismatchError, FilterStateError
from .filters import FilterCoefficients
from .pyramid import Pyramid

logger = logging.getLogger(__name__)


class FilterPhase(str, Enum):
    """Lifecycle of a TemporalBandpassFilter.

    - UNSEEDED: no state; the next apply() seeds it from its input.
    - SEEDED: per-level recurrence state is live.
    """

    UNSEEDED = "unseeded"
    SEEDED = "seeded"


@dataclass
class FilterState:
    """Per-level recurrence buffers, one entry per pyramid level.

    Attributes:
        low_lp: Lowpass accumulators for the low cutoff.
        high_lp: Lowpass accumulators for the high cutoff.
        prev_input: Previous frame's pyramid levels (shared delay line).
    """

    low_lp: list[np.ndarray]
    high_lp: list[np.ndarray]
    prev_input: list[np.ndarray]

    @classmethod
    def seeded_from(cls, pyramid: Pyramid) -> "FilterState":
        """Create state at steady state for a constant input equal to pyramid."""
        return cls(
            low_lp=[np.array(level, dtype=np.float64, copy=True) for level in pyramid],
            high_lp=[np.array(level, dtype=np.float64, copy=True) for level in pyramid],
            prev_input=[
                np.array(level, dtype=np.float64, copy=True) for level in pyramid
            ],
        )

    @property
    def shapes(self) -> list[tuple[int, ...]]:
        """Shape of each level the state was seeded with."""
        return [buf.shape for buf in self.prev_input]


class TemporalBandpassFilter:
    """Band-pass filter over time as the difference of two first-order lowpasses.

    Each pyramid level is filtered independently with two IIR lowpass
    recurrences (high and low cutoff) that share a single one-frame delay
    line. Their difference passes the band between the cutoffs. Only one
    frame of history is kept per level.

    Instances are stateful and not safe for concurrent use; frames must be
    applied in capture order. Call reset() after a gap or a change of input.
    """

    def __init__(
        self,
        low: FilterCoefficients,
        high: FilterCoefficients,
        n_levels: int,
    ):
        """Initialize the filter.

        Args:
            low: First-order lowpass coefficients for the low cutoff.
            high: First-order lowpass coefficients for the high cutoff.
            n_levels: Number of pyramid levels every apply() call must carry.

        Raises:
            ConfigurationError: If a coefficient set is not first order or
                n_levels < 1.
        """
        for name, coeffs in (("low", low), ("high", high)):
            if len(coeffs.b) != 2 or len(coeffs.a) != 2:
                raise ConfigurationError(
                    f"{name} coefficients must be first order (2 taps each), "
                    f"got b={len(coeffs.b)}, a={len(coeffs.a)}"
                )
            if coeffs.a[0] == 0:
                raise ConfigurationError(f"{name} feedback a[0] must be nonzero")
        if n_levels < 1:
            raise ConfigurationError(f"n_levels must be >= 1, got {n_levels}")

        self.low = low
        self.high = high
        self.n_levels = n_levels
        self._phase = FilterPhase.UNSEEDED
        self._state: FilterState | None = None

    @property
    def phase(self) -> FilterPhase:
        """Current lifecycle phase."""
        return self._phase

    @property
    def state(self) -> FilterState:
        """Live recurrence state.

        Raises:
            FilterStateError: If the filter has not been seeded.
        """
        if self._phase is FilterPhase.UNSEEDED:
            raise FilterStateError("Filter has not been seeded; call apply() first")
        return self._state

    def reset(self) -> None:
        """Discard all state; the next apply() re-seeds from its input."""
        self._state = None
        self._phase = FilterPhase.UNSEEDED
        logger.debug("Temporal filter reset")

    def apply(self, pyramid: Pyramid) -> Pyramid:
        """Filter one frame's pyramid and advance the recurrence.

        Args:
            pyramid: Pyramid of exactly n_levels levels, coarsest first.

        Returns:
            Band-passed pyramid (new arrays). All zeros on the seeding call.

        Raises:
            DimensionMismatchError: If the pyramid has the wrong number of
                levels or a level's shape differs from the seeded state.
        """
        if len(pyramid) != self.n_levels:
            raise DimensionMismatchError(
                f"Expected {self.n_levels} pyramid levels, got {len(pyramid)}"
            )

        if self._phase is FilterPhase.UNSEEDED:
            self._state = FilterState.seeded_from(pyramid)
            self._phase = FilterPhase.SEEDED
            logger.debug(
                "Temporal filter seeded with level shapes %s", self._state.shapes
            )
            return [np.zeros(level.shape, dtype=np.float64) for level in pyramid]

        state = self._state
        shapes = [level.shape for level in pyramid]
        if shapes != state.shapes:
            raise DimensionMismatchError(
                f"Pyramid level shapes {shapes} differ from seeded shapes "
                f"{state.shapes}; call reset() before changing resolution"
            )

        hb0, hb1 = self.high.b
        ha0, ha1 = self.high.a
        lb0, lb1 = self.low.b
        la0, la1 = self.low.a

        bandpassed = []
        for i, x in enumerate(pyramid):
            high_lp = state.high_lp[i]
            low_lp = state.low_lp[i]
            prev = state.prev_input[i]

            high_lp *= -ha1
            high_lp += hb0 * x
            high_lp += hb1 * prev
            high_lp /= ha0

            low_lp *= -la1
            low_lp += lb0 * x
            low_lp += lb1 * prev
            low_lp /= la0

            np.copyto(prev, x)
            bandpassed.append(high_lp - low_lp)

        return bandpassed
