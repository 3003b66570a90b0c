"""Tests for configuration system."""

import logging
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from evmagnify.config import (
    MagnificationPreset,
    MagnifierConfig,
    PipelineConfig,
    RuntimeConfig,
    SamplingConfig,
)
from evmagnify.errors import ConfigurationError


class TestMagnifierConfig:
    """Tests for MagnifierConfig."""

    def test_defaults(self):
        """Test default values."""
        config = MagnifierConfig()
        assert config.alpha == 50.0
        assert config.fl == pytest.approx(1.0)
        assert config.fh == pytest.approx(1.6667, abs=1e-4)
        assert config.n_levels == 4
        assert config.fps == 30.0
        assert config.attenuation == 1.0

    def test_normalized_cutoffs(self):
        """Test cutoffs normalized by the frame rate."""
        config = MagnifierConfig(fl=1.0, fh=3.0, fps=30.0)
        assert config.low_cutoff == pytest.approx(1 / 30)
        assert config.high_cutoff == pytest.approx(0.1)

    def test_frozen(self):
        """Test the config cannot be mutated after construction."""
        config = MagnifierConfig()
        with pytest.raises(ValidationError):
            config.alpha = 10.0

    def test_raises_configuration_error_directly(self):
        """Test range errors are not wrapped in a pydantic ValidationError."""
        with pytest.raises(ConfigurationError, match="Nyquist"):
            MagnifierConfig(fh=20.0, fps=30.0)

    def test_nyquist_boundary(self):
        """Test fh just below Nyquist is accepted and fh at Nyquist is not."""
        MagnifierConfig(fl=1.0, fh=14.99, fps=30.0)
        with pytest.raises(ConfigurationError):
            MagnifierConfig(fl=1.0, fh=15.0, fps=30.0)

    def test_extra_keys_warn(self, caplog):
        """Test unknown keys are accepted with a warning."""
        with caplog.at_level(logging.WARNING):
            MagnifierConfig(gamma=2.2)
        assert "Unknown config keys in MagnifierConfig" in caplog.text


class TestSamplingConfig:
    """Tests for SamplingConfig."""

    def test_defaults(self):
        """Test default values."""
        config = SamplingConfig()
        assert config.frame_start == 0
        assert config.frame_stop is None

    def test_invalid_window(self):
        """Test stop must come after start."""
        with pytest.raises(ValueError):
            SamplingConfig(frame_start=10, frame_stop=5)


class TestRuntimeConfig:
    """Tests for RuntimeConfig."""

    def test_defaults(self):
        """Test default values."""
        config = RuntimeConfig()
        assert config.max_workers == 1
        assert config.codec == "mp4v"
        assert config.quiet is False

    def test_invalid_workers(self):
        """Test max_workers must be positive."""
        with pytest.raises(ValueError, match="max_workers"):
            RuntimeConfig(max_workers=0)

    def test_invalid_codec(self):
        """Test codec must be four characters."""
        with pytest.raises(ValueError, match="four-character"):
            RuntimeConfig(codec="h264x")


class TestPipelineConfig:
    """Tests for PipelineConfig."""

    def test_defaults(self):
        """Test default values."""
        config = PipelineConfig()
        assert config.color_space == "ycrcb"
        assert config.preset is None
        assert config.magnifier == MagnifierConfig()

    def test_yaml_round_trip(self, tmp_path: Path):
        """Test saving and reloading preserves all values."""
        config = PipelineConfig(
            input_path="in.mp4",
            output_path="out.mp4",
            color_space="bgr",
            magnifier=MagnifierConfig(alpha=20.0, fl=0.5, fh=2.0, n_levels=3),
            sampling=SamplingConfig(frame_start=5, frame_stop=100),
            runtime=RuntimeConfig(max_workers=3, quiet=True),
        )
        path = tmp_path / "nested" / "config.yaml"

        config.to_yaml(path)
        loaded = PipelineConfig.from_yaml(path)

        assert loaded == config

    def test_partial_yaml_uses_defaults(self, tmp_path: Path, caplog):
        """Test missing sections fall back to defaults."""
        path = tmp_path / "config.yaml"
        data = {"input_path": "frames/", "magnifier": {"alpha": 80}}
        path.write_text(yaml.safe_dump(data))

        with caplog.at_level(logging.INFO):
            config = PipelineConfig.from_yaml(path)

        assert config.input_path == "frames/"
        assert config.magnifier.alpha == 80.0
        assert config.magnifier.n_levels == 4
        assert config.runtime == RuntimeConfig()
        assert "Using default: runtime" in caplog.text

    def test_empty_yaml(self, tmp_path: Path):
        """Test an empty file yields the default config."""
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert PipelineConfig.from_yaml(path) == PipelineConfig()

    def test_type_error_reports_yaml_path(self, tmp_path: Path):
        """Test validation errors name the offending YAML path."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"runtime": {"max_workers": "many"}}))

        with pytest.raises(ValueError, match="runtime.max_workers"):
            PipelineConfig.from_yaml(path)

    def test_invalid_color_space(self, tmp_path: Path):
        """Test an unknown color space is rejected."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"color_space": "hsv"}))

        with pytest.raises(ValueError, match="color_space"):
            PipelineConfig.from_yaml(path)

    def test_inconsistent_band_in_yaml(self, tmp_path: Path):
        """Test an inverted band in YAML raises ConfigurationError."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"magnifier": {"fl": 3.0, "fh": 2.0}}))

        with pytest.raises(ConfigurationError, match="fh must be greater"):
            PipelineConfig.from_yaml(path)

    def test_missing_file(self, tmp_path: Path):
        """Test a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            PipelineConfig.from_yaml(tmp_path / "missing.yaml")


class TestPresets:
    """Tests for frequency-band presets."""

    def test_respiration_preset(self):
        """Test the respiration preset replaces default band values."""
        config = PipelineConfig().apply_preset(MagnificationPreset.RESPIRATION)

        assert config.preset is MagnificationPreset.RESPIRATION
        assert config.magnifier.fl == 0.2
        assert config.magnifier.fh == 0.5
        assert config.magnifier.alpha == 20.0

    def test_preset_keeps_user_values(self):
        """Test user-specified values take precedence over the preset."""
        config = PipelineConfig(magnifier=MagnifierConfig(alpha=75.0, fps=60.0))

        config.apply_preset("respiration")

        assert config.magnifier.alpha == 75.0
        assert config.magnifier.fps == 60.0
        assert config.magnifier.fl == 0.2

    def test_preset_serializes_by_value(self, tmp_path: Path):
        """Test the preset is written as its string value."""
        config = PipelineConfig().apply_preset(MagnificationPreset.PULSE)
        path = tmp_path / "config.yaml"

        config.to_yaml(path)

        with open(path) as f:
            data = yaml.safe_load(f)
        assert data["preset"] == "pulse"
