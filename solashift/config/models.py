# solashift/config/models.py

"""
Pydantic models describing the structure and validation of solashift.toml.
Uses Pydantic V2 syntax.
"""

from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _resolve_path(path: Union[str, Path]) -> Path:
    """Resolves and expands user paths."""
    return Path(path).expanduser().resolve()


class DefaultsConfig(BaseModel):
    """Default processing parameters for recorded blocks."""
    sample_rate: int = Field(16000, gt=0, description="Sample rate of captured and processed audio (Hz).")
    time_scale: float = Field(0.87, gt=0, description="Time scale factor: > 1.0 faster tempo, < 1.0 slower tempo.")
    num_channels: int = Field(4, ge=1, description="Number of interleaved channels in a raw capture file.")
    channel: int = Field(0, ge=0, description="Channel extracted from a raw capture file.")
    filter_order: int = Field(2, ge=0, description="Half-width of the moving-average low-pass filter.")


class SolaConfig(BaseModel):
    """Window durations used to derive the SOLA parameters in samples."""
    sequence_ms: float = Field(100.0, gt=0, description="Processing sequence duration (ms).")
    overlap_ms: float = Field(20.0, gt=0, description="Cross-fade duration at each sequence boundary (ms).")
    seek_window_ms: float = Field(15.0, gt=0, description="Best-overlap search window duration (ms).")


class PathsConfig(BaseModel):
    """File paths used by solashift."""
    output_dir: Path = Field(default=Path("./solashift_output"), validate_default=True, description="Default directory for pipeline outputs.")
    log_directory: Path = Field(default=Path("./solashift_logs"), validate_default=True, description="Directory for log files.")

    @field_validator('output_dir', 'log_directory', mode='before')
    @classmethod
    def resolve_paths_before_validation(cls, value: Any) -> Path:
        """Resolves paths before Pydantic validates them."""
        if isinstance(value, (str, Path)):
            return _resolve_path(value)
        return value


class LoggingConfig(BaseModel):
    """Logging configuration settings."""
    log_file_enabled: bool = Field(False, description="Enable/disable persistent file logging.")
    log_filename_template: str = Field("solashift_run_{timestamp:%Y%m%d_%H%M%S}.log", description="Naming pattern for log files.")
    log_level_file: str = Field("DEBUG", description="Minimum level for file logs (DEBUG, INFO, WARNING, ERROR, CRITICAL).")
    log_format: str = Field("%(asctime)s [%(levelname)-8s] %(name)-30s - %(message)s (%(filename)s:%(lineno)d)", description="Format string for file log entries.")

    @field_validator('log_level_file')
    @classmethod
    def check_log_level(cls, value: str) -> str:
        """Validate log level strings."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in allowed_levels:
            raise ValueError(f"Invalid log level '{value}'. Must be one of {allowed_levels}")
        return upper_value


class SolashiftConfig(BaseModel):
    """Root configuration model for solashift."""
    model_config = ConfigDict(
        extra='ignore',
        validate_assignment=True
    )

    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    sola: SolaConfig = Field(default_factory=SolaConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
