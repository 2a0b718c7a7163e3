# solashift/core/pipeline.py

"""
Record-to-playback processing chain around the SOLA engine.

A raw multi-channel capture is reduced to one channel, low-pass filtered and
time-scaled; each stage is written as a mono 16-bit WAV file. Playing the
time-scaled result back at ``playback_rate`` (or resampling it to the input
length with ``pitch_shift``) restores the original duration with a shifted
pitch: slower tempo gives a higher pitch, faster tempo a lower one.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import numpy as np
from numpy.typing import NDArray
from scipy.signal import resample

from solashift.config import SolashiftConfig
from solashift.core.capture import read_raw_capture
from solashift.core.filters import moving_average
from solashift.core.sola import ScaleParameters, expected_output_length, sola, time_scale
from solashift.core.wav import write_wav

logger = logging.getLogger(__name__)

RAW_WAV_NAME = "mic.wav"
FILTERED_WAV_NAME = "mic_filt.wav"
SCALED_WAV_NAME = "mic_sola.wav"


@dataclass
class PipelineResult:
    """Outputs of one ``process_capture`` run."""
    raw_wav: Path
    filtered_wav: Path
    scaled_wav: Path
    input_length: int
    output_length: int
    sample_rate: int
    playback_rate: int


def scale_parameters(config: Optional[SolashiftConfig] = None,
                     factor: Optional[float] = None,
                     sample_rate: Optional[int] = None) -> ScaleParameters:
    """Validated scale parameters from configuration, with optional factor and rate overrides."""
    config = config or SolashiftConfig()
    return ScaleParameters.from_factor(
        factor if factor is not None else config.defaults.time_scale,
        sample_rate=sample_rate if sample_rate is not None else config.defaults.sample_rate,
        sequence_ms=config.sola.sequence_ms,
        overlap_ms=config.sola.overlap_ms,
        seek_window_ms=config.sola.seek_window_ms,
    ).validate()


def playback_rate(sample_rate: int, input_length: int, output_length: int) -> int:
    """Sample rate at which the scaled block plays for the input's duration."""
    if input_length <= 0:
        return sample_rate
    return sample_rate * output_length // input_length


def process_block(samples: NDArray, config: Optional[SolashiftConfig] = None,
                  factor: Optional[float] = None) -> NDArray:
    """Filters and time-scales an in-memory mono block."""
    config = config or SolashiftConfig()
    params = scale_parameters(config, factor)
    filtered = moving_average(samples, order=config.defaults.filter_order)
    return time_scale(filtered, params=params)


def pitch_shift(samples: NDArray, factor: float, sample_rate: int = 16000,
                params: Optional[ScaleParameters] = None) -> NDArray[np.int16]:
    """
    Shifts pitch while keeping the block length.

    The block is time-scaled by ``factor`` and the result resampled back to
    the input length, raising the pitch by ``1/factor``.

    Raises:
        ValueError: If the block is too short to produce any output.
    """
    samples = np.asarray(samples)
    scaled = time_scale(samples, factor, params=params, sample_rate=sample_rate)
    if len(scaled) == 0:
        raise ValueError(f"Input of {len(samples)} samples is too short to pitch shift.")
    logger.debug(f"Resampling {len(scaled)} scaled samples back to {len(samples)}")
    restored = resample(scaled.astype(np.float64), len(samples))
    return np.clip(np.round(restored), -32768, 32767).astype(np.int16)


def process_capture(
    raw_path: Union[str, Path],
    output_dir: Union[str, Path],
    config: Optional[SolashiftConfig] = None,
    factor: Optional[float] = None,
    max_samples: Optional[int] = None,
) -> PipelineResult:
    """
    Runs the full chain on a raw interleaved capture file.

    Writes ``mic.wav`` (extracted channel), ``mic_filt.wav`` (moving average)
    and ``mic_sola.wav`` (time-scaled) into ``output_dir``.

    Args:
        raw_path: Raw capture file.
        output_dir: Directory for the three WAV files.
        config: Configuration; defaults are used if omitted.
        factor: Time scale factor overriding ``config.defaults.time_scale``.
        max_samples: Process at most this many samples of the channel.

    Returns:
        PipelineResult describing the outputs.
    """
    config = config or SolashiftConfig()
    defaults = config.defaults
    params = scale_parameters(config, factor)
    output_dir = Path(output_dir)

    samples = read_raw_capture(raw_path, num_channels=defaults.num_channels,
                               channel=defaults.channel, max_samples=max_samples)
    raw_wav = output_dir / RAW_WAV_NAME
    write_wav(raw_wav, samples, defaults.sample_rate)

    filtered = moving_average(samples, order=defaults.filter_order)
    filtered_wav = output_dir / FILTERED_WAV_NAME
    write_wav(filtered_wav, filtered, defaults.sample_rate)

    output = np.empty(expected_output_length(len(filtered), params), dtype=np.int16)
    written = sola(output, filtered, len(filtered), params)
    if written == 0:
        logger.warning(f"Capture of {len(filtered)} samples is too short for one SOLA sequence; output is empty.")
    scaled_wav = output_dir / SCALED_WAV_NAME
    write_wav(scaled_wav, output[:written], defaults.sample_rate)

    result = PipelineResult(
        raw_wav=raw_wav,
        filtered_wav=filtered_wav,
        scaled_wav=scaled_wav,
        input_length=len(samples),
        output_length=written,
        sample_rate=defaults.sample_rate,
        playback_rate=playback_rate(defaults.sample_rate, len(samples), written),
    )
    logger.info(f"Pipeline complete: {result.input_length} -> {result.output_length} samples, "
                f"playback at {result.playback_rate} Hz")
    return result
