"""Digital Butterworth lowpass design via the bilinear transform."""

import logging
import math
from dataclasses import dataclass

import numpy as np
from scipy import signal

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# Sample rate of the normalized design domain (cutoff is given in units of
# half-cycles per sample, as in scipy.signal.butter)
_DESIGN_FS = 2.0


@dataclass(frozen=True)
class FilterCoefficients:
    """Transfer-function coefficients of a digital IIR filter.

    Attributes:
        b: Feedforward (numerator) taps, shape (order + 1,), float64.
        a: Feedback (denominator) taps, shape (order + 1,), float64.
            a[0] is the normalization divisor and is never zero.
    """

    b: np.ndarray
    a: np.ndarray

    @property
    def order(self) -> int:
        """Filter order (number of taps minus one)."""
        return len(self.a) - 1


def butter_lowpass(order: int, cutoff: float) -> FilterCoefficients:
    """Design a digital Butterworth lowpass filter.

    Places the analog prototype poles on the unit circle, pre-warps the
    cutoff, maps the scaled poles through the bilinear transform and expands
    the zeros/poles into polynomial coefficients. The result matches
    ``scipy.signal.butter(order, cutoff)``.

    Args:
        order: Filter order (>= 1).
        cutoff: Cutoff frequency divided by the sample rate, in (0, 0.5).

    Returns:
        FilterCoefficients with b and a of length order + 1 and a[0] == 1.

    Raises:
        ConfigurationError: If order < 1 or cutoff is outside (0, 0.5).
    """
    if isinstance(order, bool) or not isinstance(order, (int, np.integer)):
        raise ConfigurationError(f"Filter order must be an integer, got {order!r}")
    if order < 1:
        raise ConfigurationError(f"Filter order must be >= 1, got {order}")
    if not math.isfinite(cutoff) or not 0.0 < cutoff < 0.5:
        raise ConfigurationError(
            f"Normalized cutoff must be in the open interval (0, 0.5), got {cutoff}"
        )

    # Analog prototype: poles on the left half of the unit circle, no zeros
    poles = -np.exp(1j * np.pi * np.arange(-order + 1, order, 2) / (2 * order))

    # Pre-warp and scale to the cutoff
    warped = 2.0 * _DESIGN_FS * math.tan(math.pi * cutoff / _DESIGN_FS)
    poles = poles * warped
    gain = warped**order

    # Bilinear transform; every analog zero at infinity maps to z = -1
    fs2 = 2.0 * _DESIGN_FS
    digital_poles = (fs2 + poles) / (fs2 - poles)
    digital_zeros = -np.ones(order)
    digital_gain = gain * np.real(1.0 / np.prod(fs2 - poles))

    b = digital_gain * np.real(np.poly(digital_zeros))
    a = np.real(np.poly(digital_poles))

    logger.debug(
        "Butterworth lowpass (order=%d, cutoff=%.5f): b=%s, a=%s", order, cutoff, b, a
    )
    return FilterCoefficients(b=b.astype(np.float64), a=a.astype(np.float64))


def frequency_response(
    coeffs: FilterCoefficients, freqs: np.ndarray, fps: float
) -> np.ndarray:
    """Complex frequency response of a coefficient set.

    Args:
        coeffs: Filter coefficients.
        freqs: Frequencies in Hz, shape (N,).
        fps: Sample rate in Hz.

    Returns:
        Complex response at each frequency, shape (N,).
    """
    worN = np.asarray(freqs, dtype=np.float64)
    _, h = signal.freqz(coeffs.b, coeffs.a, worN=worN, fs=fps)
    return h
