# tests/test_wav.py

"""
Tests for the PCM WAV container in solashift.core.wav.
"""

import logging

import pytest
import numpy as np
import soundfile as sf
from pathlib import Path
from numpy.testing import assert_array_equal

from solashift.core.wav import HEADER_SIZE, WavFormatError, WavHeader, read_wav, write_wav


@pytest.fixture
def int16_block():
    rng = np.random.default_rng(5)
    return rng.integers(-32768, 32767, 2000).astype(np.int16)


def test_header_for_samples():
    header = WavHeader.for_samples(32000, sample_rate=16000)
    assert header.data_bytes == 64000
    assert header.riff_size == 36 + 64000
    assert header.byte_rate == 32000
    assert header.block_align == 2
    assert header.num_samples == 32000

def test_header_pack_layout():
    packed = WavHeader.for_samples(100).pack()
    assert len(packed) == HEADER_SIZE
    assert packed[0:4] == b"RIFF"
    assert packed[8:16] == b"WAVEfmt "
    assert packed[36:40] == b"data"
    assert int.from_bytes(packed[4:8], "little") == 36 + 200
    assert int.from_bytes(packed[24:28], "little") == 16000
    assert int.from_bytes(packed[40:44], "little") == 200

def test_header_unpack_roundtrip():
    header = WavHeader.for_samples(1234, sample_rate=8000)
    assert WavHeader.unpack(header.pack()) == header

def test_header_unpack_rejects_bad_data():
    with pytest.raises(WavFormatError):
        WavHeader.unpack(b"RIFF")
    bad = bytearray(WavHeader.for_samples(10).pack())
    bad[36:40] = b"LIST"
    with pytest.raises(WavFormatError):
        WavHeader.unpack(bytes(bad))

def test_header_rejects_negative_count():
    with pytest.raises(ValueError):
        WavHeader.for_samples(-1)

def test_write_wav_readable_by_soundfile(tmp_path: Path, int16_block):
    out_file = tmp_path / "sub" / "out.wav"
    header = write_wav(out_file, int16_block, 16000)
    assert out_file.stat().st_size == HEADER_SIZE + header.data_bytes
    data, sr = sf.read(str(out_file), dtype='int16')
    assert sr == 16000
    assert_array_equal(data, int16_block)

def test_write_empty_block(tmp_path: Path):
    out_file = tmp_path / "empty.wav"
    header = write_wav(out_file, np.zeros(0, dtype=np.int16))
    assert header.data_bytes == 0
    samples, sr = read_wav(out_file)
    assert len(samples) == 0
    assert sr == 16000

def test_written_header_matches_sample_count(tmp_path: Path):
    out_file = tmp_path / "scaled.wav"
    header = write_wav(out_file, np.zeros(32000, dtype=np.int16), 16000)
    on_disk = WavHeader.unpack(out_file.read_bytes()[:HEADER_SIZE])
    assert on_disk == header == WavHeader.for_samples(32000, sample_rate=16000)
    assert on_disk.data_bytes == 64000

def test_write_wav_float_and_wide_ints(tmp_path: Path):
    out_file = tmp_path / "float.wav"
    write_wav(out_file, np.array([0.0, 0.5, -1.0, 2.0]))
    samples, _ = read_wav(out_file)
    assert_array_equal(samples, [0, 16384, -32767, 32767])

    write_wav(out_file, np.array([40000, -40000, 12], dtype=np.int32))
    samples, _ = read_wav(out_file)
    assert_array_equal(samples, [32767, -32768, 12])

def test_write_wav_rejects_multichannel(tmp_path: Path):
    with pytest.raises(ValueError):
        write_wav(tmp_path / "x.wav", np.zeros((10, 2), dtype=np.int16))

def test_read_wav_roundtrip(tmp_path: Path, int16_block):
    out_file = tmp_path / "rt.wav"
    write_wav(out_file, int16_block, 22050)
    samples, sr = read_wav(out_file)
    assert sr == 22050
    assert samples.dtype == np.int16
    assert_array_equal(samples, int16_block)

def test_read_wav_stereo_uses_first_channel(tmp_path: Path, int16_block, caplog):
    stereo = np.stack([int16_block, -int16_block // 2], axis=1)
    path = tmp_path / "stereo.wav"
    sf.write(str(path), stereo, 16000, subtype='PCM_16')
    with caplog.at_level(logging.WARNING, logger="solashift.core.wav"):
        samples, _ = read_wav(path)
    assert_array_equal(samples, int16_block)
    assert "first channel" in caplog.text

def test_read_wav_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        read_wav(tmp_path / "missing.wav")
