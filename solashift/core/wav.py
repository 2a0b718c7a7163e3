# solashift/core/wav.py

"""
Canonical 44-byte RIFF/WAVE container for mono 16-bit PCM blocks.

Files are written and read through soundfile. ``WavHeader`` describes the
header a block of a given length carries, so callers can check that the size
fields match the sample count reported by the time-scale engine.
"""

import logging
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

import numpy as np
import soundfile as sf
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

HEADER_SIZE = 44
PCM_FORMAT = 1
# RIFF id, size, WAVE id, fmt id, fmt size, format, channels, rate,
# byte rate, block align, bits per sample, data id, data size
_HEADER_STRUCT = struct.Struct("<4sI4s4sIHHIIHH4sI")


class WavFormatError(ValueError):
    """Raised when bytes do not form a canonical PCM WAV header."""


@dataclass
class WavHeader:
    """Fields of the canonical PCM WAV header."""
    riff_size: int
    num_channels: int = 1
    sample_rate: int = 16000
    byte_rate: int = 32000
    block_align: int = 2
    bits_per_sample: int = 16
    data_bytes: int = 0
    audio_format: int = PCM_FORMAT
    fmt_chunk_size: int = 16

    @classmethod
    def for_samples(cls, num_samples: int, sample_rate: int = 16000,
                    num_channels: int = 1, bits_per_sample: int = 16) -> "WavHeader":
        """Header for ``num_samples`` frames of integer PCM."""
        if num_samples < 0:
            raise ValueError(f"Sample count must be non-negative, got {num_samples}.")
        block_align = num_channels * bits_per_sample // 8
        data_bytes = num_samples * block_align
        return cls(
            riff_size=36 + data_bytes,
            num_channels=num_channels,
            sample_rate=sample_rate,
            byte_rate=sample_rate * block_align,
            block_align=block_align,
            bits_per_sample=bits_per_sample,
            data_bytes=data_bytes,
        )

    @property
    def num_samples(self) -> int:
        return self.data_bytes // self.block_align if self.block_align else 0

    def pack(self) -> bytes:
        return _HEADER_STRUCT.pack(
            b"RIFF", self.riff_size, b"WAVE",
            b"fmt ", self.fmt_chunk_size, self.audio_format, self.num_channels,
            self.sample_rate, self.byte_rate, self.block_align, self.bits_per_sample,
            b"data", self.data_bytes,
        )

    @classmethod
    def unpack(cls, data: bytes) -> "WavHeader":
        """
        Parses the first 44 bytes of ``data``.

        Raises:
            WavFormatError: If the data is too short or a chunk id is wrong.
        """
        if len(data) < HEADER_SIZE:
            raise WavFormatError(f"WAV header needs {HEADER_SIZE} bytes, got {len(data)}.")
        (riff, riff_size, wave, fmt, fmt_size, audio_format, channels, rate,
         byte_rate, block_align, bits, data_id, data_bytes) = _HEADER_STRUCT.unpack(data[:HEADER_SIZE])
        if riff != b"RIFF" or wave != b"WAVE":
            raise WavFormatError("Missing RIFF/WAVE identifiers.")
        if fmt != b"fmt " or fmt_size != 16:
            raise WavFormatError("Expected a 16-byte 'fmt ' chunk directly after the RIFF header.")
        if data_id != b"data":
            raise WavFormatError("Expected the 'data' chunk directly after the 'fmt ' chunk.")
        return cls(
            riff_size=riff_size,
            num_channels=channels,
            sample_rate=rate,
            byte_rate=byte_rate,
            block_align=block_align,
            bits_per_sample=bits,
            data_bytes=data_bytes,
            audio_format=audio_format,
            fmt_chunk_size=fmt_size,
        )


def write_wav(output_path: Union[str, Path], samples: NDArray, sample_rate: int = 16000) -> WavHeader:
    """
    Writes a mono 16-bit PCM WAV file.

    Args:
        output_path: Destination file. Parent directories are created.
        samples: 1D block of int16 samples. Other integer dtypes are clipped
                 to the int16 range; float input is treated as [-1.0, 1.0].
        sample_rate: Sample rate stored in the header.

    Returns:
        The header that was written.
    """
    output_path = Path(output_path)
    samples = np.asarray(samples)
    if samples.ndim != 1:
        raise ValueError(f"Expected mono (1D) samples, got shape {samples.shape}.")

    if np.issubdtype(samples.dtype, np.floating):
        pcm = np.clip(np.round(samples * 32767.0), -32768, 32767).astype('<i2')
    elif samples.dtype != np.int16:
        pcm = np.clip(samples, -32768, 32767).astype('<i2')
    else:
        pcm = samples.astype('<i2', copy=False)

    header = WavHeader.for_samples(len(pcm), sample_rate=sample_rate)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info(f"Writing {len(pcm)} samples to: {output_path} (sr={sample_rate})")
    try:
        sf.write(str(output_path), pcm, sample_rate, subtype='PCM_16', format='WAV')
    except Exception as e:
        logger.error(f"Error saving audio file {output_path}: {e}")
        raise
    return header


def read_wav(input_path: Union[str, Path]) -> Tuple[NDArray[np.int16], int]:
    """
    Reads a WAV file as int16 samples.

    Multi-channel files are reduced to their first channel.

    Returns:
        Tuple of (samples, sample_rate).

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    input_path = Path(input_path)
    if not input_path.is_file():
        raise FileNotFoundError(f"Audio input file not found: {input_path}")

    data, sample_rate = sf.read(str(input_path), dtype='int16', always_2d=True)
    if data.shape[1] > 1:
        logger.warning(f"{input_path.name} has {data.shape[1]} channels; using the first channel.")
    samples = np.ascontiguousarray(data[:, 0])
    logger.debug(f"Read {len(samples)} samples from {input_path} (sr={sample_rate})")
    return samples, int(sample_rate)
