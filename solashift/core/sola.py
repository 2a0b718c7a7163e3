# solashift/core/sola.py

"""
SOLA (synchronized overlap-add) time-scale modification.

The input block is walked in fixed-size processing sequences. The flat middle
of each sequence is copied to the output verbatim, and consecutive sequences
are joined by a linear cross-fade whose alignment is chosen by a weighted
cross-correlation search. Advancing the input by a scaled stride while the
output advances by a fixed stride changes the tempo without altering the
local waveform shape.

All work happens on explicit offsets into caller-owned NumPy arrays: the
input is never modified and ``sola`` writes only into the output array it is
given.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

# Reference configuration: 16 kHz capture, 13% slower tempo
DEFAULT_SAMPLE_RATE = 16000
DEFAULT_TIME_SCALE = 0.87
# Processing sequence, overlap and seek window durations (ms)
SEQUENCE_MS = 100.0
OVERLAP_MS = 20.0
SEEK_WINDOW_MS = 15.0


def _ms_to_samples(duration_ms: float, sample_rate: int) -> int:
    return int(round(sample_rate * duration_ms / 1000.0))


@dataclass(frozen=True)
class ScaleParameters:
    """
    Sample counts driving one SOLA run, derived once from the time scale factor.

    Attributes:
        time_scale: Tempo factor. Values > 1.0 speed up (shorter output),
                    values < 1.0 slow down (longer output).
        sequence_length: Samples in one processing sequence.
        overlap_length: Samples cross-faded at each sequence boundary.
        seek_window_length: Number of candidate offsets examined by the search.
        sample_rate: Rate the durations were converted with (informational).
    """
    time_scale: float
    sequence_length: int
    overlap_length: int
    seek_window_length: int
    sample_rate: int = DEFAULT_SAMPLE_RATE

    @classmethod
    def from_factor(
        cls,
        time_scale: float = DEFAULT_TIME_SCALE,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        sequence_ms: float = SEQUENCE_MS,
        overlap_ms: float = OVERLAP_MS,
        seek_window_ms: float = SEEK_WINDOW_MS,
    ) -> "ScaleParameters":
        """Builds parameters from millisecond durations at the given sample rate."""
        if sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {sample_rate}.")
        return cls(
            time_scale=float(time_scale),
            sequence_length=_ms_to_samples(sequence_ms, sample_rate),
            overlap_length=_ms_to_samples(overlap_ms, sample_rate),
            seek_window_length=_ms_to_samples(seek_window_ms, sample_rate),
            sample_rate=sample_rate,
        )

    @property
    def flat_duration(self) -> int:
        """Samples of each sequence copied to the output without blending."""
        return self.sequence_length - 2 * self.overlap_length

    @property
    def sequence_skip(self) -> int:
        """Nominal input advance per processed sequence."""
        return int(math.floor((self.sequence_length - self.overlap_length) * self.time_scale))

    @property
    def output_step(self) -> int:
        """Output samples produced per processed sequence."""
        return self.sequence_length - self.overlap_length

    @property
    def input_guard(self) -> int:
        """
        Remaining input must exceed this many samples to process another sequence.

        Never smaller than the reference threshold
        ``sequence_skip + seek_window_length``; larger when ``time_scale < 1``.
        """
        return max(self.sequence_skip, self.output_step) + self.seek_window_length

    def validate(self) -> "ScaleParameters":
        """
        Checks the preconditions the engine relies on.

        Returns:
            self, so the call can be chained.

        Raises:
            ValueError: If the factor or any derived length is out of range.
        """
        if not self.time_scale > 0:
            raise ValueError(f"Time scale factor must be positive, got {self.time_scale}.")
        if self.overlap_length < 1:
            raise ValueError(f"Overlap length must be at least 1 sample, got {self.overlap_length}.")
        if self.seek_window_length < 1:
            raise ValueError(f"Seek window must be at least 1 sample, got {self.seek_window_length}.")
        if self.flat_duration < 1:
            raise ValueError(
                f"Sequence length ({self.sequence_length}) must exceed twice the overlap "
                f"({self.overlap_length}) to leave a flat section."
            )
        if self.sequence_skip < 1:
            raise ValueError(
                f"Time scale factor {self.time_scale} is too small: sequence skip is "
                f"{self.sequence_skip} samples."
            )
        return self


def seek_best_overlap(
    previous_tail: NDArray,
    candidate_region: NDArray,
    params: ScaleParameters,
) -> int:
    """
    Finds the offset where the new segment best continues the previous one.

    The previous tail is weighted by the triangular slope ``i * (overlap - i)``
    and correlated against every window of ``overlap_length`` samples that
    starts within the first ``seek_window_length`` samples of the candidate
    region. The first strictly greatest score wins, so equal scores resolve
    to the smallest offset.

    Args:
        previous_tail: ``overlap_length`` samples ending the previous segment.
        candidate_region: ``seek_window_length + overlap_length`` samples
                          starting at the nominal position of the next segment.
        params: Scale parameters.

    Returns:
        Offset in ``[0, seek_window_length)``.
    """
    overlap = params.overlap_length
    seek = params.seek_window_length
    if len(previous_tail) != overlap:
        raise ValueError(f"Previous tail must hold {overlap} samples, got {len(previous_tail)}.")
    if len(candidate_region) < seek + overlap:
        raise ValueError(
            f"Candidate region must hold at least {seek + overlap} samples, got {len(candidate_region)}."
        )

    ramp = np.arange(overlap, dtype=np.float64)
    weighted = np.asarray(previous_tail, dtype=np.float64) * ramp * (overlap - ramp)

    windows = sliding_window_view(np.asarray(candidate_region[:seek + overlap - 1], dtype=np.float64), overlap)
    scores = windows @ weighted
    # argmax keeps the first maximum
    return int(np.argmax(scores))


def overlap_blend(
    output: NDArray,
    previous_tail: NDArray,
    new_head: NDArray,
    params: ScaleParameters,
) -> None:
    """
    Cross-fades ``previous_tail`` into ``new_head`` and writes the result to ``output``.

    ``output[i] = (prev[i] * (overlap - i) + new[i] * i) / overlap``. Integer
    outputs use integer arithmetic truncated toward zero, float outputs use
    true division.
    """
    overlap = params.overlap_length
    ramp = np.arange(overlap, dtype=np.int64)

    if np.issubdtype(output.dtype, np.integer):
        mixed = (np.asarray(previous_tail, dtype=np.int64) * (overlap - ramp)
                 + np.asarray(new_head, dtype=np.int64) * ramp)
        quotient = np.abs(mixed) // overlap
        output[:overlap] = np.where(mixed < 0, -quotient, quotient)
    else:
        mixed = (np.asarray(previous_tail, dtype=np.float64) * (overlap - ramp)
                 + np.asarray(new_head, dtype=np.float64) * ramp)
        output[:overlap] = mixed / overlap


def expected_output_length(num_in_samples: int, params: ScaleParameters) -> int:
    """
    Number of samples ``sola`` writes for an input of ``num_in_samples``.

    Zero when the input is too short for a single sequence plus search margin.
    """
    guard = params.input_guard
    if num_in_samples <= guard:
        return 0
    skip = params.sequence_skip
    iterations = (num_in_samples - guard + skip - 1) // skip
    return iterations * params.output_step


# Output buffers sized with this are exactly large enough
max_output_length = expected_output_length


def sola(
    output: NDArray,
    samples: NDArray,
    num_in_samples: Optional[int] = None,
    params: Optional[ScaleParameters] = None,
) -> int:
    """
    Time-scales ``samples`` into the caller-provided ``output`` array.

    Parameters are assumed to be valid (see ``ScaleParameters.validate``) and
    ``output`` must hold at least ``expected_output_length`` samples. Input
    left over after the last complete sequence is dropped.

    A sequence is processed only while more than ``params.input_guard``
    samples remain. For factors below 1.0 this is wider than the
    ``sequence_skip + seek_window_length`` threshold of the reference engine,
    so short inputs between the two thresholds (1354 to 1520 samples at
    0.87) produce no output instead of reading past the end of the input.

    Args:
        output: Destination array, written from index 0.
        samples: Mono input block. Never modified.
        num_in_samples: Number of leading samples of ``samples`` to process.
                        Defaults to the whole array.
        params: Scale parameters. Defaults to the reference configuration.

    Returns:
        Number of samples written to ``output``.
    """
    if params is None:
        params = ScaleParameters.from_factor()
    if num_in_samples is None:
        num_in_samples = len(samples)
    if not 0 <= num_in_samples <= len(samples):
        raise ValueError(f"num_in_samples ({num_in_samples}) must be within [0, {len(samples)}].")

    overlap = params.overlap_length
    flat = params.flat_duration
    skip = params.sequence_skip
    step = params.output_step
    seek_span = params.seek_window_length + overlap
    guard = params.input_guard

    seq_offset = 0   # selected start of the current sequence
    nominal = 0      # scaled input position
    out_pos = 0
    remaining = num_in_samples

    while remaining > guard:
        output[out_pos:out_pos + flat] = samples[seq_offset:seq_offset + flat]
        prev_offset = seq_offset + flat
        previous_tail = samples[prev_offset:prev_offset + overlap]

        nominal += skip - overlap
        offset = seek_best_overlap(previous_tail, samples[nominal:nominal + seek_span], params)
        seq_offset = nominal + offset

        overlap_blend(output[out_pos + flat:out_pos + step], previous_tail,
                      samples[seq_offset:seq_offset + overlap], params)

        seq_offset += overlap
        nominal += overlap
        out_pos += step
        remaining -= skip

    return out_pos


def time_scale(
    samples: NDArray,
    factor: float = DEFAULT_TIME_SCALE,
    params: Optional[ScaleParameters] = None,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
) -> NDArray:
    """
    Allocates an output block and runs ``sola`` over the whole input.

    Args:
        samples: 1D mono input block (int16 for 16-bit PCM, floats accepted).
        factor: Time scale factor, used when ``params`` is not given.
        params: Explicit scale parameters; overrides ``factor``/``sample_rate``.
        sample_rate: Rate used to derive sample counts from the default durations.

    Returns:
        Time-scaled block with the same dtype as the input.

    Raises:
        ValueError: If the input is not 1D or the parameters are invalid.
    """
    samples = np.asarray(samples)
    if samples.ndim != 1:
        raise ValueError("Input audio data must be a 1D array.")
    if params is None:
        params = ScaleParameters.from_factor(factor, sample_rate=sample_rate)
    params.validate()

    output = np.empty(expected_output_length(len(samples), params), dtype=samples.dtype)
    written = sola(output, samples, len(samples), params)
    logger.debug(
        f"SOLA: scale={params.time_scale}, skip={params.sequence_skip}, "
        f"{len(samples)} samples in, {written} samples out"
    )
    if written < len(output):
        output = output[:written]
    return output
