"""Synthetic pulsing frame sequences for profiling and testing."""

import numpy as np


def make_pulse_frames(
    frame_shape: tuple[int, int],
    n_frames: int,
    fps: float = 30.0,
    freq: float = 1.2,
    amplitude: float = 2.0,
    base: float = 128.0,
    noise_std: float = 0.0,
    seed: int = 0,
) -> list[np.ndarray]:
    """Generate uint8 frames whose intensity oscillates sinusoidally over time.

    A smooth spatial texture is modulated by ``amplitude * sin(2 pi freq t)``,
    mimicking the faint periodic color change of skin under a pulse.

    Args:
        frame_shape: Frame size as (height, width).
        n_frames: Number of frames.
        fps: Sample rate (Hz).
        freq: Oscillation frequency (Hz).
        amplitude: Peak intensity change (gray levels).
        base: Mean intensity.
        noise_std: Standard deviation of additive Gaussian noise per frame.
        seed: Random seed for the noise.

    Returns:
        List of n_frames uint8 arrays of shape frame_shape.
    """
    height, width = frame_shape
    rng = np.random.default_rng(seed)

    # Gentle gradient so pyramid levels are not trivially constant
    yy, xx = np.mgrid[0:height, 0:width]
    texture = 10.0 * np.sin(2 * np.pi * xx / max(width, 1)) * np.cos(
        2 * np.pi * yy / max(height, 1)
    )

    frames = []
    for n in range(n_frames):
        t = n / fps
        frame = base + texture + amplitude * np.sin(2 * np.pi * freq * t)
        if noise_std > 0:
            frame = frame + rng.normal(0.0, noise_std, size=frame.shape)
        frames.append(np.clip(np.rint(frame), 0, 255).astype(np.uint8))
    return frames
