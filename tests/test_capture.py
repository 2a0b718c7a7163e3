# tests/test_capture.py

"""
Tests for raw capture recording and channel extraction in solashift.core.capture.
"""

import threading
import time

import pytest
import numpy as np
from pathlib import Path
from numpy.testing import assert_array_equal

from solashift.core.capture import CaptureWriter, extract_channel, read_raw_capture


@pytest.fixture
def interleaved():
    """100 frames of 4 channels where channel c holds 1000*c + frame index."""
    frames = np.arange(100)
    return np.stack([1000 * c + frames for c in range(4)], axis=1).astype('<i2').ravel()


def test_extract_channel_from_array(interleaved):
    assert_array_equal(extract_channel(interleaved, 4, 0), np.arange(100))
    assert_array_equal(extract_channel(interleaved, 4, 3), 3000 + np.arange(100))

def test_extract_channel_from_bytes(interleaved):
    samples = extract_channel(interleaved.tobytes(), num_channels=4, channel=2)
    assert samples.dtype == np.int16
    assert_array_equal(samples, 2000 + np.arange(100))

def test_extract_channel_drops_partial_frame(interleaved):
    raw = interleaved.tobytes() + b"\x01\x00\x02"  # one sample and a stray byte
    assert len(extract_channel(raw, 4, 0)) == 100

@pytest.mark.parametrize("num_channels, channel", [(0, 0), (4, 4), (4, -1)])
def test_extract_channel_invalid(interleaved, num_channels, channel):
    with pytest.raises(ValueError):
        extract_channel(interleaved, num_channels, channel)

def test_read_raw_capture(tmp_path: Path, interleaved):
    raw_file = tmp_path / "mic.dat"
    raw_file.write_bytes(interleaved.tobytes())
    assert_array_equal(read_raw_capture(raw_file, 4, 1), 1000 + np.arange(100))
    assert len(read_raw_capture(raw_file, 4, 0, max_samples=30)) == 30

def test_read_raw_capture_missing(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        read_raw_capture(tmp_path / "nope.dat")


def test_capture_writer_records_all_blocks(tmp_path: Path):
    raw_file = tmp_path / "rec" / "mic.dat"
    blocks = [np.arange(i * 8, i * 8 + 8, dtype=np.int16) for i in range(6)]

    with CaptureWriter(raw_file, blocks_to_record=len(blocks)) as writer:
        def producer():
            for block in blocks:
                while not writer.on_buffer(block):
                    time.sleep(0.001)
        thread = threading.Thread(target=producer)
        thread.start()
        assert writer.wait(timeout=10)
        thread.join()

    assert writer.blocks_written == len(blocks)
    data = np.frombuffer(raw_file.read_bytes(), dtype='<i2')
    assert_array_equal(data, np.arange(48))

def test_capture_writer_copies_blocks(tmp_path: Path):
    """The producer may reuse its buffer as soon as the callback returns."""
    raw_file = tmp_path / "mic.dat"
    buffer = np.ones(4, dtype=np.int16)
    writer = CaptureWriter(raw_file, blocks_to_record=1)
    assert writer.on_buffer(buffer)
    buffer[:] = 9
    writer.start()
    assert writer.wait(timeout=10)
    writer.stop()
    assert_array_equal(np.frombuffer(raw_file.read_bytes(), dtype='<i2'), [1, 1, 1, 1])

def test_capture_writer_drops_when_slot_full(tmp_path: Path):
    writer = CaptureWriter(tmp_path / "mic.dat", blocks_to_record=3)
    assert writer.on_buffer(np.zeros(4, dtype=np.int16))
    assert not writer.on_buffer(np.zeros(4, dtype=np.int16))
    assert writer.blocks_dropped == 1

def test_capture_writer_ignores_blocks_after_finish(tmp_path: Path):
    writer = CaptureWriter(tmp_path / "mic.dat", blocks_to_record=1)
    writer.on_buffer(np.zeros(2, dtype=np.int16))
    writer.start()
    assert writer.wait(timeout=10)
    assert not writer.on_buffer(np.zeros(2, dtype=np.int16))
    writer.stop()

def test_capture_writer_stop_before_done(tmp_path: Path):
    raw_file = tmp_path / "mic.dat"
    writer = CaptureWriter(raw_file, blocks_to_record=10).start()
    assert not writer.wait(timeout=0.05)
    writer.stop()
    assert writer.finished.is_set()
    assert raw_file.exists()

def test_capture_writer_reports_write_errors(tmp_path: Path):
    writer = CaptureWriter(tmp_path, blocks_to_record=1)  # a directory cannot be opened for writing
    writer.start()
    with pytest.raises(OSError):
        writer.wait(timeout=10)

def test_capture_writer_exit_keeps_inflight_exception(tmp_path: Path):
    with pytest.raises(ValueError, match="callback failed"):
        with CaptureWriter(tmp_path, blocks_to_record=1) as writer:
            assert writer.finished.wait(timeout=10)
            raise ValueError("callback failed")
    assert isinstance(writer._error, OSError)

def test_capture_writer_exit_raises_write_error(tmp_path: Path):
    with pytest.raises(OSError):
        with CaptureWriter(tmp_path, blocks_to_record=1) as writer:
            assert writer.finished.wait(timeout=10)

def test_capture_writer_invalid_count(tmp_path: Path):
    with pytest.raises(ValueError):
        CaptureWriter(tmp_path / "mic.dat", blocks_to_record=0)

def test_capture_writer_start_twice(tmp_path: Path):
    writer = CaptureWriter(tmp_path / "mic.dat", blocks_to_record=1).start()
    with pytest.raises(RuntimeError):
        writer.start()
    writer.stop()
