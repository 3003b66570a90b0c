"""Configuration management for evmagnify."""

import logging
import math
from enum import Enum
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

VALID_COLOR_SPACES = ["ycrcb", "bgr", "gray"]


class MagnificationPreset(str, Enum):
    """Frequency-band presets for common physiological signals.

    - PULSE: heart rate, 60-100 bpm (1.0-1.67 Hz).
    - RESPIRATION: breathing, 12-30 breaths/min (0.2-0.5 Hz).
    """

    PULSE = "pulse"
    RESPIRATION = "respiration"


PRESET_CONFIGS = {
    MagnificationPreset.PULSE: {
        "alpha": 50.0,
        "fl": 60 / 60.0,
        "fh": 100 / 60.0,
        "n_levels": 4,
    },
    MagnificationPreset.RESPIRATION: {
        "alpha": 20.0,
        "fl": 0.2,
        "fh": 0.5,
        "n_levels": 4,
    },
}


class MagnifierConfig(BaseModel):
    """Parameters of one per-channel magnifier, immutable once built.

    Validation failures raise ConfigurationError directly (it is not a
    ValueError, so pydantic does not wrap it).

    Attributes:
        alpha: Amplification factor applied to the band-passed signal.
        fl: Low cutoff frequency (Hz).
        fh: High cutoff frequency (Hz), below the Nyquist frequency fps / 2.
        n_levels: Gaussian pyramid depth (1 = full resolution only).
        fps: Frame rate of the input (Hz).
        attenuation: Weight of the collapsed delta when added to the frame.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    alpha: float = 50.0
    fl: float = 60 / 60.0
    fh: float = 100 / 60.0
    n_levels: int = 4
    fps: float = 30.0
    attenuation: float = 1.0

    @model_validator(mode="after")
    def check_parameters(self) -> "MagnifierConfig":
        """Validate cutoffs against the sample rate and the remaining ranges."""
        for name in ("alpha", "fl", "fh", "fps", "attenuation"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ConfigurationError(f"{name} must be finite, got {value}")
        if self.fps <= 0:
            raise ConfigurationError(f"fps must be > 0, got {self.fps}")
        if self.fl <= 0:
            raise ConfigurationError(f"fl must be > 0, got {self.fl}")
        if self.fh <= self.fl:
            raise ConfigurationError(
                f"fh must be greater than fl, got fl={self.fl}, fh={self.fh}"
            )
        if self.fh >= self.fps / 2:
            raise ConfigurationError(
                f"fh must be below the Nyquist frequency {self.fps / 2} Hz, "
                f"got fh={self.fh}"
            )
        if self.n_levels < 1:
            raise ConfigurationError(f"n_levels must be >= 1, got {self.n_levels}")
        if self.alpha <= 0:
            logger.warning(
                "alpha=%s is not positive; the band-passed signal will be "
                "suppressed or inverted rather than amplified",
                self.alpha,
            )
        if self.__pydantic_extra__:
            logger.warning(
                "Unknown config keys in MagnifierConfig (ignored): %s",
                list(self.__pydantic_extra__.keys()),
            )
        return self

    @property
    def low_cutoff(self) -> float:
        """Low cutoff normalized by the sample rate."""
        return self.fl / self.fps

    @property
    def high_cutoff(self) -> float:
        """High cutoff normalized by the sample rate."""
        return self.fh / self.fps


class SamplingConfig(BaseModel):
    """Which input frames to process.

    Attributes:
        frame_start: First frame index to process.
        frame_stop: Frame index to stop before (None = end of input).
    """

    model_config = ConfigDict(extra="allow")

    frame_start: int = 0
    frame_stop: int | None = None

    @model_validator(mode="after")
    def check_window(self) -> "SamplingConfig":
        """Validate the frame window and warn about extra fields."""
        if self.frame_start < 0:
            raise ValueError(f"frame_start must be >= 0, got {self.frame_start}")
        if self.frame_stop is not None and self.frame_stop <= self.frame_start:
            raise ValueError(
                f"frame_stop ({self.frame_stop}) must be greater than "
                f"frame_start ({self.frame_start})"
            )
        if self.__pydantic_extra__:
            logger.warning(
                "Unknown config keys in SamplingConfig (ignored): %s",
                list(self.__pydantic_extra__.keys()),
            )
        return self


class RuntimeConfig(BaseModel):
    """Runtime settings.

    Attributes:
        max_workers: Threads used to process color channels in parallel
            (1 = process channels sequentially).
        codec: FourCC code used when writing video output.
        quiet: Suppress progress output.
    """

    model_config = ConfigDict(extra="allow")

    max_workers: int = 1
    codec: str = "mp4v"
    quiet: bool = False

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        """Validate that max_workers is positive."""
        if v < 1:
            raise ValueError(f"max_workers must be >= 1, got {v}")
        return v

    @field_validator("codec")
    @classmethod
    def validate_codec(cls, v: str) -> str:
        """Validate that codec is a four-character code."""
        if len(v) != 4:
            raise ValueError(f"codec must be a four-character code, got {v!r}")
        return v

    @model_validator(mode="after")
    def warn_extra_fields(self) -> "RuntimeConfig":
        """Warn about unknown configuration keys."""
        if self.__pydantic_extra__:
            logger.warning(
                "Unknown config keys in RuntimeConfig (ignored): %s",
                list(self.__pydantic_extra__.keys()),
            )
        return self


class PipelineConfig(BaseModel):
    """Top-level configuration for magnifying a video or image sequence.

    Attributes:
        input_path: Video file or directory of images to magnify.
        output_path: Output video file (video suffix) or directory for PNGs.
        color_space: Channels to magnify ("ycrcb", "bgr" or "gray").
        preset: Optional frequency-band preset recorded for reference.
        magnifier: Per-channel magnifier parameters.
        sampling: Frame window.
        runtime: Runtime settings.
    """

    model_config = ConfigDict(extra="allow")

    input_path: str = ""
    output_path: str = ""
    color_space: Literal["ycrcb", "bgr", "gray"] = "ycrcb"
    preset: MagnificationPreset | None = None

    magnifier: MagnifierConfig = Field(default_factory=MagnifierConfig)
    sampling: SamplingConfig = Field(default_factory=SamplingConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)

    @model_validator(mode="after")
    def warn_extra_fields(self) -> "PipelineConfig":
        """Warn about unknown top-level keys."""
        if self.__pydantic_extra__:
            logger.warning(
                "Unknown config keys in PipelineConfig (ignored): %s",
                list(self.__pydantic_extra__.keys()),
            )
        return self

    def apply_preset(self, preset: MagnificationPreset) -> "PipelineConfig":
        """Apply a frequency-band preset to the magnifier settings.

        Only values still at their defaults are replaced; user-specified
        values take precedence.

        Args:
            preset: Preset to apply.

        Returns:
            Self for method chaining.

        Raises:
            ConfigurationError: If the preset band does not fit the
                configured frame rate.
        """
        preset_values = PRESET_CONFIGS[MagnificationPreset(preset)]
        default_magnifier = MagnifierConfig()

        values = self.magnifier.model_dump()
        for key, preset_value in preset_values.items():
            if values[key] == getattr(default_magnifier, key):
                values[key] = preset_value

        self.magnifier = MagnifierConfig(**values)
        self.preset = MagnificationPreset(preset)
        return self

    @classmethod
    def from_yaml(cls, path: str | Path) -> "PipelineConfig":
        """Load configuration from a YAML file.

        Missing fields use their default values.

        Args:
            path: Path to YAML configuration file.

        Returns:
            Loaded configuration with defaults filled in.

        Raises:
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError: If the file is not valid YAML.
            ValueError: If type or range validation fails (all errors listed).
            ConfigurationError: If the magnifier parameters are inconsistent.
        """
        path = Path(path)
        with open(path) as f:
            data = yaml.safe_load(f)

        if data is None:
            data = {}

        for section in ("magnifier", "sampling", "runtime"):
            if section not in data:
                logger.info("Using default: %s (all defaults)", section)

        try:
            config = cls.model_validate(data)
        except ValidationError as e:
            formatted_errors = format_validation_errors(e)
            raise ValueError(
                f"Configuration validation failed:\n{formatted_errors}"
            ) from None

        return config

    def to_yaml(self, path: str | Path) -> None:
        """Save configuration to a YAML file, defaults included.

        Args:
            path: Path to output YAML file.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(mode="json")

        with open(path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


def format_validation_errors(error: ValidationError) -> str:
    """Format Pydantic validation errors with YAML-style paths.

    Args:
        error: Pydantic ValidationError.

    Returns:
        Formatted error string with YAML paths and messages.
    """
    lines = []
    for err in error.errors():
        loc = err["loc"]
        path_parts: list[str] = []
        for part in loc:
            if isinstance(part, int) and path_parts:
                path_parts[-1] = f"{path_parts[-1]}[{part}]"
            else:
                path_parts.append(str(part))

        path = ".".join(path_parts)
        lines.append(f"  {path}: {err['msg']}")

    return "\n".join(lines)


def load_magnifier_config(data: dict[str, Any]) -> MagnifierConfig:
    """Build a MagnifierConfig, reporting type errors as ConfigurationError.

    Args:
        data: Magnifier parameters.

    Returns:
        Validated MagnifierConfig.

    Raises:
        ConfigurationError: If any parameter is missing a valid type or value.
    """
    try:
        return MagnifierConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid magnifier parameters:\n{format_validation_errors(e)}"
        ) from None
