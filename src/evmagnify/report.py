"""Filter diagnostics: coefficient table and frequency-response plot."""

from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
from tabulate import tabulate

from .config import MagnifierConfig
from .filters import FilterCoefficients, butter_lowpass, frequency_response
from .magnifier import FILTER_ORDER


def design_filters(
    config: MagnifierConfig,
) -> tuple[FilterCoefficients, FilterCoefficients]:
    """Design the low- and high-cutoff lowpass filters for a config.

    Args:
        config: Magnifier parameters.

    Returns:
        (low, high) coefficient sets, as used by EvmMagnifier.
    """
    low = butter_lowpass(FILTER_ORDER, config.low_cutoff)
    high = butter_lowpass(FILTER_ORDER, config.high_cutoff)
    return low, high


def band_gain(config: MagnifierConfig, freqs: np.ndarray) -> np.ndarray:
    """Magnitude response of the band-pass (high lowpass minus low lowpass).

    Args:
        config: Magnifier parameters.
        freqs: Frequencies in Hz, shape (N,).

    Returns:
        |H_high(f) - H_low(f)|, shape (N,).
    """
    low, high = design_filters(config)
    h = frequency_response(high, freqs, config.fps) - frequency_response(
        low, freqs, config.fps
    )
    return np.abs(h)


def filter_summary(config: MagnifierConfig) -> list[list]:
    """Coefficient rows for both lowpass filters.

    Args:
        config: Magnifier parameters.

    Returns:
        Rows of [name, cutoff (Hz), normalized cutoff, b, a].
    """
    low, high = design_filters(config)
    rows = []
    for name, cutoff_hz, coeffs in (
        ("low", config.fl, low),
        ("high", config.fh, high),
    ):
        rows.append(
            [
                name,
                f"{cutoff_hz:.4f}",
                f"{cutoff_hz / config.fps:.5f}",
                ", ".join(f"{v:.8f}" for v in coeffs.b),
                ", ".join(f"{v:.8f}" for v in coeffs.a),
            ]
        )
    return rows


def format_filter_table(config: MagnifierConfig) -> str:
    """Format the filter design and band gains as tables.

    Args:
        config: Magnifier parameters.

    Returns:
        Multi-line string: coefficient table, then band-pass gain at fl, the
        band center, fh and the Nyquist frequency.
    """
    lines = [
        f"Band-pass {config.fl:.3f}-{config.fh:.3f} Hz at {config.fps:.1f} fps "
        f"(alpha={config.alpha}, {config.n_levels} levels)",
        "",
    ]
    headers = ["Filter", "Cutoff (Hz)", "Cutoff / fps", "b", "a"]
    lines.append(tabulate(filter_summary(config), headers=headers, tablefmt="grid"))
    lines.append("")

    probes = [
        ("fl", config.fl),
        ("center", (config.fl + config.fh) / 2),
        ("fh", config.fh),
        ("nyquist", config.fps / 2),
    ]
    freqs = np.array([f for _, f in probes])
    gains = band_gain(config, freqs)
    gain_rows = [
        [name, f"{freq:.4f}", f"{gain:.5f}", f"{gain * config.alpha:.3f}"]
        for (name, freq), gain in zip(probes, gains)
    ]
    lines.append(
        tabulate(
            gain_rows,
            headers=["Probe", "Frequency (Hz)", "Band gain", "Amplified gain"],
            tablefmt="grid",
        )
    )
    return "\n".join(lines)


def render_frequency_response(
    config: MagnifierConfig,
    output_path: str | Path,
    n_points: int = 512,
    dpi: int = 150,
) -> None:
    """Plot the band-pass magnitude response from DC to Nyquist.

    Args:
        config: Magnifier parameters.
        output_path: Path to save the PNG image.
        n_points: Number of frequency samples.
        dpi: Output resolution.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    freqs = np.linspace(0.0, config.fps / 2, n_points)
    gains = band_gain(config, freqs)

    fig, ax = plt.subplots(1, 1, figsize=(8, 5))
    ax.plot(freqs, gains, color="tab:blue", label="|H_high - H_low|")
    ax.axvspan(config.fl, config.fh, color="tab:orange", alpha=0.2, label="Pass band")
    ax.set_xlabel("Frequency (Hz)")
    ax.set_ylabel("Gain")
    ax.set_title(
        f"Temporal band-pass response ({config.fl:.2f}-{config.fh:.2f} Hz, "
        f"{config.fps:.0f} fps)"
    )
    ax.set_xlim(0.0, config.fps / 2)
    ax.grid(True, alpha=0.3)
    ax.legend()

    fig.savefig(output_path, dpi=dpi, bbox_inches="tight", pad_inches=0.1)
    plt.close(fig)
