# solashift/core/capture.py

"""
Raw microphone capture: recording interleaved blocks to disk and extracting
a single channel from the recording afterwards.

A capture source delivers fixed-size blocks of interleaved int16 samples from
a periodic callback. ``CaptureWriter`` hands each block to a writer thread
through a single-slot queue so the callback never blocks on file I/O; a block
arriving while the previous one is still pending is dropped and counted.
"""

import logging
import queue
import threading
from pathlib import Path
from typing import Optional, Union

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

DEFAULT_NUM_CHANNELS = 4


def extract_channel(
    raw: Union[bytes, NDArray],
    num_channels: int = DEFAULT_NUM_CHANNELS,
    channel: int = 0,
) -> NDArray[np.int16]:
    """
    De-interleaves one channel from interleaved int16 frames.

    Args:
        raw: Interleaved little-endian int16 data, as bytes or an int16 array.
        num_channels: Samples per frame.
        channel: Index of the channel to extract.

    Returns:
        Contiguous int16 array with one sample per complete frame. A trailing
        partial frame is ignored.
    """
    if num_channels < 1:
        raise ValueError(f"Number of channels must be at least 1, got {num_channels}.")
    if not 0 <= channel < num_channels:
        raise ValueError(f"Channel {channel} out of range for {num_channels} channels.")

    if isinstance(raw, (bytes, bytearray, memoryview)):
        usable = len(raw) - len(raw) % 2
        interleaved = np.frombuffer(raw[:usable], dtype='<i2')
    else:
        interleaved = np.asarray(raw)
        if interleaved.ndim != 1:
            raise ValueError("Interleaved data must be a 1D array.")

    num_frames = len(interleaved) // num_channels
    frames = interleaved[:num_frames * num_channels].reshape(num_frames, num_channels)
    return np.ascontiguousarray(frames[:, channel], dtype=np.int16)


def read_raw_capture(
    path: Union[str, Path],
    num_channels: int = DEFAULT_NUM_CHANNELS,
    channel: int = 0,
    max_samples: Optional[int] = None,
) -> NDArray[np.int16]:
    """
    Reads a raw interleaved capture file and returns one channel.

    Args:
        path: Raw capture file (headerless interleaved int16).
        num_channels: Samples per frame in the file.
        channel: Channel to extract.
        max_samples: Keep at most this many samples of the channel.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Raw capture file not found: {path}")
    samples = extract_channel(path.read_bytes(), num_channels=num_channels, channel=channel)
    if max_samples is not None:
        samples = samples[:max_samples]
    logger.info(f"Extracted channel {channel}/{num_channels} from {path.name}: {len(samples)} samples")
    return samples


class CaptureWriter:
    """
    Writes periodic capture blocks to a raw file from a background thread.

    Usage::

        with CaptureWriter("mic.dat", blocks_to_record=181) as writer:
            source.start(writer.on_buffer)
            writer.wait()

    ``finished`` is set once ``blocks_to_record`` blocks have been written
    (or the writer was stopped or failed).
    """

    def __init__(self, path: Union[str, Path], blocks_to_record: int):
        if blocks_to_record < 1:
            raise ValueError(f"blocks_to_record must be at least 1, got {blocks_to_record}.")
        self.path = Path(path)
        self.blocks_to_record = blocks_to_record
        self.blocks_written = 0
        self.blocks_dropped = 0
        self.finished = threading.Event()
        self._slot: "queue.Queue[NDArray]" = queue.Queue(maxsize=1)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._error: Optional[BaseException] = None

    def start(self) -> "CaptureWriter":
        if self._thread is not None:
            raise RuntimeError("CaptureWriter already started.")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._thread = threading.Thread(target=self._run, name="capture-writer", daemon=True)
        self._thread.start()
        logger.info(f"Recording {self.blocks_to_record} blocks to {self.path}")
        return self

    def on_buffer(self, block: NDArray) -> bool:
        """
        Capture callback. Copies ``block`` into the hand-off slot.

        Returns:
            True if the block was accepted, False if it was dropped because the
            slot was full or recording has finished.
        """
        if self.finished.is_set():
            return False
        try:
            self._slot.put_nowait(np.array(block, dtype='<i2'))
        except queue.Full:
            self.blocks_dropped += 1
            logger.debug(f"Writer busy, dropped capture block ({self.blocks_dropped} dropped so far)")
            return False
        return True

    def _run(self) -> None:
        try:
            with open(self.path, "wb") as f:
                while self.blocks_written < self.blocks_to_record and not self._stop.is_set():
                    try:
                        block = self._slot.get(timeout=0.05)
                    except queue.Empty:
                        continue
                    f.write(block.tobytes())
                    self.blocks_written += 1
        except OSError as e:
            logger.error(f"Error writing capture file {self.path}: {e}")
            self._error = e
        finally:
            self.finished.set()
            logger.debug(f"Capture writer done: {self.blocks_written} written, {self.blocks_dropped} dropped")

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Blocks until recording has finished.

        Returns:
            False if ``timeout`` elapsed first.

        Raises:
            OSError: If the writer thread failed to write the file.
        """
        done = self.finished.wait(timeout)
        if self._error is not None:
            raise self._error
        return done

    def stop(self, raise_errors: bool = True) -> None:
        """
        Stops the writer thread; blocks already written stay on disk.

        Raises:
            OSError: If the writer thread failed and ``raise_errors`` is set.
        """
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
        if raise_errors and self._error is not None:
            raise self._error

    def __enter__(self) -> "CaptureWriter":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        # A write error must not replace an exception already propagating
        self.stop(raise_errors=exc_type is None)
