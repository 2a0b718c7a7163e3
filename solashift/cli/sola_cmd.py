# solashift/cli/sola_cmd.py

"""
CLI commands for time scaling, pitch shifting and processing raw captures.
"""

import logging
from pathlib import Path
from typing import Optional

import click
from tabulate import tabulate

from solashift.core.filters import moving_average
from solashift.core.pipeline import (pitch_shift, playback_rate, process_capture,
                                     scale_parameters)
from solashift.core.sola import expected_output_length, time_scale
from solashift.core.wav import read_wav, write_wav
from .base_cmd import get_config, scale_option

logger = logging.getLogger(__name__)

input_argument = click.argument("input_file", type=click.Path(exists=True, dir_okay=False, resolve_path=True))
output_option = click.option("-o", "--output", type=click.Path(dir_okay=False, resolve_path=True), required=True,
                             help="Output WAV file path.")


def _parameters_or_usage_error(config, scale, sample_rate=None):
    try:
        return scale_parameters(config, scale, sample_rate=sample_rate)
    except ValueError as e:
        raise click.UsageError(f"Invalid time scale settings: {e}")


# --- Params Command ---
@click.command("params")
@scale_option
@click.option("-r", "--sample-rate", type=int, default=None, help="Sample rate (Hz). Defaults to the configured value.")
@click.option("-n", "--input-length", type=int, default=None, help="Also report the output length for this many input samples.")
@click.pass_context
def params_cmd(ctx, scale: Optional[float], sample_rate: Optional[int], input_length: Optional[int]):
    """Show the SOLA parameters derived from a time scale factor."""
    config = get_config(ctx)
    params = _parameters_or_usage_error(config, scale, sample_rate)
    rows = [
        ("time_scale", params.time_scale),
        ("sample_rate", params.sample_rate),
        ("sequence_length", params.sequence_length),
        ("overlap_length", params.overlap_length),
        ("seek_window_length", params.seek_window_length),
        ("flat_duration", params.flat_duration),
        ("sequence_skip", params.sequence_skip),
        ("output_step", params.output_step),
    ]
    if input_length is not None:
        if input_length < 0:
            raise click.UsageError("Input length must be non-negative.")
        out_len = expected_output_length(input_length, params)
        rows.append(("input_length", input_length))
        rows.append(("output_length", out_len))
        rows.append(("playback_rate", playback_rate(params.sample_rate, input_length, out_len)))
    click.echo(tabulate(rows, headers=["Parameter", "Value"]))


# --- Stretch Command ---
@click.command("stretch")
@input_argument
@output_option
@scale_option
@click.option("--filter-order", type=int, default=None,
              help="Moving-average half-width applied before scaling (0 disables). Defaults to defaults.filter_order.")
@click.pass_context
def stretch_cmd(ctx, input_file: str, output: str, scale: Optional[float], filter_order: Optional[int]):
    """Change the tempo of a WAV file without changing its waveform shape."""
    config = get_config(ctx)
    input_path = Path(input_file)
    output_path = Path(output)
    if filter_order is None:
        filter_order = config.defaults.filter_order
    logger.info(f"Running 'stretch' on: {input_path}")

    try:
        samples, sr = read_wav(input_path)
        params = _parameters_or_usage_error(config, scale, sample_rate=sr)
        if filter_order:
            samples = moving_average(samples, order=filter_order)
        scaled = time_scale(samples, params=params)
        write_wav(output_path, scaled, sr)
    except click.UsageError:
        raise
    except (ValueError, RuntimeError) as e:
        raise click.UsageError(f"Error during time scaling: {e}")
    except Exception as e:
        logger.error(f"An unexpected error occurred during time scaling: {e}", exc_info=True)
        raise click.Abort()

    click.echo(f"Time scaled '{input_path.name}' (scale={params.time_scale}): "
               f"{len(samples)} -> {len(scaled)} samples, saved to '{output_path.name}'.")


# --- Pitch Command ---
@click.command("pitch")
@input_argument
@output_option
@scale_option
@click.pass_context
def pitch_cmd(ctx, input_file: str, output: str, scale: Optional[float]):
    """Shift the pitch of a WAV file while keeping its duration."""
    config = get_config(ctx)
    input_path = Path(input_file)
    output_path = Path(output)
    logger.info(f"Running 'pitch' on: {input_path}")

    try:
        samples, sr = read_wav(input_path)
        params = _parameters_or_usage_error(config, scale, sample_rate=sr)
        shifted = pitch_shift(samples, params.time_scale, sample_rate=sr, params=params)
        write_wav(output_path, shifted, sr)
    except click.UsageError:
        raise
    except (ValueError, RuntimeError) as e:
        raise click.UsageError(f"Error during pitch shifting: {e}")
    except Exception as e:
        logger.error(f"An unexpected error occurred during pitch shifting: {e}", exc_info=True)
        raise click.Abort()

    click.echo(f"Pitch shifted '{input_path.name}' by a factor of {1.0 / params.time_scale:.3f}, "
               f"saved to '{output_path.name}'.")


# --- Process Command ---
@click.command("process")
@click.argument("raw_file", type=click.Path(exists=True, dir_okay=False, resolve_path=True))
@click.option("-d", "--output-dir", type=click.Path(file_okay=False, resolve_path=True), default=None,
              help="Directory for mic.wav, mic_filt.wav and mic_sola.wav. Defaults to the configured output directory.")
@click.option("--channels", type=int, default=None, help="Interleaved channels in the raw file.")
@click.option("--channel", type=int, default=None, help="Channel to extract.")
@click.option("--max-samples", type=int, default=None, help="Process at most this many samples.")
@scale_option
@click.pass_context
def process_cmd(ctx, raw_file: str, output_dir: Optional[str], channels: Optional[int],
                channel: Optional[int], max_samples: Optional[int], scale: Optional[float]):
    """Extract, filter and time scale a raw interleaved capture."""
    config = get_config(ctx)
    overrides = {}
    if channels is not None:
        overrides["num_channels"] = channels
    if channel is not None:
        overrides["channel"] = channel
    if overrides:
        config = config.model_copy(update={"defaults": config.defaults.model_copy(update=overrides)})
    out_dir = Path(output_dir) if output_dir else config.paths.output_dir
    _parameters_or_usage_error(config, scale)

    try:
        result = process_capture(Path(raw_file), out_dir, config=config, factor=scale, max_samples=max_samples)
    except ValueError as e:
        raise click.UsageError(f"Error processing capture: {e}")
    except Exception as e:
        logger.error(f"An unexpected error occurred while processing the capture: {e}", exc_info=True)
        raise click.Abort()

    click.echo(tabulate([
        ("raw", result.raw_wav),
        ("filtered", result.filtered_wav),
        ("scaled", result.scaled_wav),
        ("input_length", result.input_length),
        ("output_length", result.output_length),
        ("playback_rate", result.playback_rate),
    ], headers=["Output", "Value"]))
