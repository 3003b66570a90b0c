"""Command-line interface for evmagnify."""

import argparse
import logging
import sys
from pathlib import Path

import yaml

from evmagnify.config import MagnificationPreset, MagnifierConfig, PipelineConfig
from evmagnify.errors import ConfigurationError, EvmError

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )

    # Silence noisy third-party loggers
    for name in ("matplotlib", "PIL"):
        logging.getLogger(name).setLevel(logging.WARNING)


def _load_config(config_path: Path) -> PipelineConfig:
    """Load a config file or exit with an error message."""
    if not config_path.exists():
        print(f"Error: Config file not found: {config_path}", file=sys.stderr)
        sys.exit(1)

    try:
        return PipelineConfig.from_yaml(config_path)
    except (ValueError, ConfigurationError, yaml.YAMLError) as e:
        print(f"Error: Failed to load config: {e}", file=sys.stderr)
        sys.exit(1)


def _probe_fps(input_path: Path) -> float | None:
    """Read the frame rate of a video input, or None if unavailable."""
    from evmagnify.io import VideoFileSource, detect_input_type

    if detect_input_type(input_path) != "video":
        return None
    try:
        with VideoFileSource(input_path) as source:
            return source.fps
    except RuntimeError:
        return None


def init_config(
    input_path: Path,
    output_path: str,
    config_path: Path,
    preset: str | None = None,
    fps: float | None = None,
) -> PipelineConfig:
    """Generate a PipelineConfig for an input and save it as YAML.

    The frame rate is taken from ``fps`` when given, otherwise from the video
    container when the input is a video, otherwise the default is kept.

    Args:
        input_path: Video file or image directory to magnify.
        output_path: Output video file or PNG directory.
        config_path: Where the generated config YAML is written.
        preset: Optional frequency-band preset name.
        fps: Optional frame rate override.

    Returns:
        The generated PipelineConfig.

    Raises:
        SystemExit: If the input does not exist or the parameters are invalid.
    """
    if not input_path.exists():
        print(f"Error: Input path does not exist: {input_path}", file=sys.stderr)
        sys.exit(1)

    if fps is None:
        fps = _probe_fps(input_path)
        if fps is not None:
            print(f"[OK] Detected frame rate: {fps:.2f} fps")

    try:
        magnifier = MagnifierConfig(fps=fps) if fps is not None else MagnifierConfig()
        config = PipelineConfig(
            input_path=str(input_path),
            output_path=output_path,
            magnifier=magnifier,
        )
        if preset is not None:
            config.apply_preset(MagnificationPreset(preset))
    except ConfigurationError as e:
        print(f"Error: Invalid parameters: {e}", file=sys.stderr)
        sys.exit(1)

    config.to_yaml(config_path)
    print(f"[OK] Configuration saved to: {config_path}")
    return config


def run_command(config_path: Path, verbose: bool = False) -> None:
    """Run magnification from a config file.

    Args:
        config_path: Path to the pipeline config YAML file.
        verbose: If True, set logging to DEBUG level.
    """
    _configure_logging(verbose)
    config = _load_config(config_path)

    from evmagnify.runner import run_magnification

    try:
        count = run_magnification(config)
    except (ValueError, RuntimeError, EvmError) as e:
        print(f"Error: Magnification failed: {e}", file=sys.stderr)
        sys.exit(1)

    print(
        f"\nMagnification complete: {count} frame(s) written to "
        f"{config.output_path}\n"
    )


def response_command(config_path: Path, plot_path: Path | None = None) -> None:
    """Print the temporal filter design and optionally plot its response.

    Args:
        config_path: Path to the pipeline config YAML file.
        plot_path: Optional PNG path for the frequency-response plot.
    """
    config = _load_config(config_path)

    # Lazy import to avoid loading matplotlib at CLI parse time
    from evmagnify.report import format_filter_table, render_frequency_response

    print(format_filter_table(config.magnifier))
    if plot_path is not None:
        render_frequency_response(config.magnifier, plot_path)
        print(f"\nFrequency response saved to: {plot_path}")


def profile_command(
    config_path: Path, width: int = 640, height: int = 480, frames: int = 60
) -> None:
    """Profile the per-channel pipeline on synthetic frames.

    Args:
        config_path: Path to the pipeline config YAML file.
        width: Synthetic frame width.
        height: Synthetic frame height.
        frames: Number of frames to process.
    """
    _configure_logging()
    config = _load_config(config_path)

    from evmagnify.profiling import format_report, profile_magnifier

    report = profile_magnifier(config.magnifier, (height, width), frames)
    print(format_report(report))


def main() -> None:
    """Main entry point for the evmagnify CLI."""
    parser = argparse.ArgumentParser(
        prog="evmagnify",
        description="Eulerian video magnification of subtle periodic color changes.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init subcommand
    init_parser = subparsers.add_parser(
        "init",
        help="Generate a config for an input video or image directory",
    )
    init_parser.add_argument(
        "--input",
        type=Path,
        required=True,
        help="Video file or directory of images to magnify",
    )
    init_parser.add_argument(
        "--output",
        type=str,
        required=True,
        help="Output video file (.mp4/.avi/...) or directory for PNG frames",
    )
    init_parser.add_argument(
        "--preset",
        type=str,
        choices=[p.value for p in MagnificationPreset],
        default=None,
        help="Frequency-band preset",
    )
    init_parser.add_argument(
        "--fps",
        type=float,
        default=None,
        help="Frame rate override (default: read from video, else 30)",
    )
    init_parser.add_argument(
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to output config YAML file (default: config.yaml)",
    )

    # run subcommand
    run_parser = subparsers.add_parser("run", help="Run magnification")
    run_parser.add_argument("config", type=Path, help="Path to config YAML file")
    run_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    # response subcommand
    response_parser = subparsers.add_parser(
        "response",
        help="Show temporal filter coefficients and band-pass gains",
    )
    response_parser.add_argument("config", type=Path, help="Path to config YAML file")
    response_parser.add_argument(
        "--plot",
        type=Path,
        default=None,
        help="Save the frequency-response plot to this PNG path",
    )

    # profile subcommand
    profile_parser = subparsers.add_parser(
        "profile",
        help="Time each pipeline stage on synthetic frames",
    )
    profile_parser.add_argument("config", type=Path, help="Path to config YAML file")
    profile_parser.add_argument(
        "--width", type=int, default=640, help="Frame width (default: 640)"
    )
    profile_parser.add_argument(
        "--height", type=int, default=480, help="Frame height (default: 480)"
    )
    profile_parser.add_argument(
        "--frames", type=int, default=60, help="Number of frames (default: 60)"
    )

    args = parser.parse_args()

    # Dispatch
    if args.command == "init":
        init_config(
            input_path=args.input,
            output_path=args.output,
            config_path=args.config,
            preset=args.preset,
            fps=args.fps,
        )
    elif args.command == "run":
        run_command(config_path=args.config, verbose=args.verbose)
    elif args.command == "response":
        response_command(config_path=args.config, plot_path=args.plot)
    elif args.command == "profile":
        profile_command(
            config_path=args.config,
            width=args.width,
            height=args.height,
            frames=args.frames,
        )
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
