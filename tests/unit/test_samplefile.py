"""Unit tests for riffchunk.samplefile."""

import io
import struct
from pathlib import Path

import numpy as np
import pytest

from riffchunk.chunks import JsonChunk
from riffchunk.errors import (
    MalformedContainer,
    RiffError,
    StreamWriteError,
    UnrecognizedFileType,
    UnsupportedBitDepth,
    UnsupportedContainerKind,
    UnsupportedEncoding,
)
from riffchunk.hooks import ChunkHooks
from riffchunk.reporting import ChunkRecorder, NullReporter
from riffchunk.samplefile import SampleFile
from riffchunk.types import ContainerKind


def fmt_bytes(encoding: int = 3, channels: int = 1, sample_rate: int = 44100, bits: int = 32) -> bytes:
    block_align = channels * bits // 8
    payload = struct.pack("<HHIIHH", encoding, channels, sample_rate, sample_rate * block_align, block_align, bits)
    return b"fmt " + struct.pack("<I", len(payload)) + payload


def chunk_bytes(tag: bytes, payload: bytes) -> bytes:
    data = tag + struct.pack("<I", len(payload)) + payload
    if len(payload) % 2:
        data += b"\x00"
    return data


def wave_bytes(*children: bytes) -> bytes:
    body = b"".join(children)
    return b"RIFF" + struct.pack("<I", 4 + len(body)) + b"WAVE" + body


def float_bytes(*samples: float) -> bytes:
    return np.asarray(samples, dtype="<f4").tobytes()


def open_stream(data: bytes = b"", **kwargs) -> SampleFile:
    sound = SampleFile(io.BytesIO(data), reporter=kwargs.pop("reporter", NullReporter()), **kwargs)
    sound.read_file()
    return sound


class TestConcreteScenario:
    """Write four stereo frames into an empty stream and read them back."""

    def test_stereo_write_then_read(self) -> None:
        stream = io.BytesIO()
        sound = SampleFile(stream, reporter=NullReporter())
        sound.channel_count = 2
        sound.sample_rate = 44100

        frames = np.array([0.0, 0.5, -0.5, 1.0, 0.25, -0.25, -1.0, 0.125], dtype=np.float32)
        assert sound.write_frames(frames) == 4
        sound.write_file()

        data = stream.getvalue()
        assert data[0:4] == b"RIFF"
        assert data[8:12] == b"WAVE"
        assert data[12:16] == b"fmt "
        assert struct.unpack("<H", data[34:36])[0] == 32
        assert struct.unpack("<I", data[4:8])[0] == len(data) - 8

        sound.read_file()
        assert sound.length() == 4
        assert sound.channel_count == 2
        assert sound.sample_rate == 44100
        np.testing.assert_array_equal(sound.read_frames(), frames.reshape(4, 2))


class TestReadFile:
    """Tests for container scanning."""

    def test_reads_shape_and_payload_offset(self) -> None:
        data = wave_bytes(fmt_bytes(channels=2, sample_rate=48000), chunk_bytes(b"data", float_bytes(1, 2, 3, 4)))

        sound = open_stream(data)

        assert sound.container_kind is ContainerKind.WAVE
        assert sound.channel_count == 2
        assert sound.sample_rate == 48000
        assert sound.payload_offset == 44
        assert sound.length() == 2
        assert sound.position() == 0

    def test_leaves_cursor_at_sample_zero(self) -> None:
        data = wave_bytes(fmt_bytes(), chunk_bytes(b"data", float_bytes(1, 2)))
        sound = open_stream(data)
        assert sound.file.position() == sound.payload_offset

    def test_skips_unknown_chunks(self) -> None:
        data = wave_bytes(
            fmt_bytes(),
            chunk_bytes(b"LIST", b"INFOabc"),
            chunk_bytes(b"data", float_bytes(0.5, -0.5)),
        )

        sound = open_stream(data)

        assert sound.payload_offset == 44 + 16
        np.testing.assert_array_equal(sound.read_frames()[:, 0], [0.5, -0.5])

    def test_empty_stream_bootstraps(self) -> None:
        stream = io.BytesIO()
        sound = SampleFile(stream, reporter=NullReporter())

        sound.read_file()

        assert sound.length() == 0
        assert sound.container_kind is ContainerKind.WAVE
        assert stream.getvalue() == b""

    def test_all_zero_header_bootstraps(self) -> None:
        sound = open_stream(b"\x00" * 12)
        assert sound.length() == 0
        assert sound.container_kind is ContainerKind.WAVE

    def test_aiff_is_recognized_but_unsupported(self) -> None:
        data = b"FORM" + struct.pack(">I", 4) + b"AIFF"

        with pytest.raises(UnsupportedContainerKind) as e:
            open_stream(data)

        assert e.value.kind is ContainerKind.AIFF

    def test_unrecognized_file_type(self) -> None:
        with pytest.raises(UnrecognizedFileType) as e:
            open_stream(b"OggS" + b"\x00" * 20)
        assert e.value.tag == b"OggS"

    def test_riff_with_other_format_is_unrecognized(self) -> None:
        with pytest.raises(UnrecognizedFileType):
            open_stream(b"RIFF" + struct.pack("<I", 4) + b"AVI ")

    def test_pcm_file_rejected(self) -> None:
        data = wave_bytes(fmt_bytes(encoding=1, bits=16), chunk_bytes(b"data", b"\x00" * 4))
        with pytest.raises(UnsupportedEncoding):
            open_stream(data)

    def test_64_bit_float_rejected(self) -> None:
        data = wave_bytes(fmt_bytes(bits=64), chunk_bytes(b"data", b"\x00" * 8))
        with pytest.raises(UnsupportedBitDepth):
            open_stream(data)

    def test_missing_data_chunk(self) -> None:
        with pytest.raises(MalformedContainer, match="no data chunk"):
            open_stream(wave_bytes(fmt_bytes()))

    def test_missing_fmt_chunk(self) -> None:
        with pytest.raises(MalformedContainer, match="no fmt chunk"):
            open_stream(wave_bytes(chunk_bytes(b"data", float_bytes(1))))

    def test_zero_filled_stream_bootstraps_empty(self) -> None:
        stream = io.BytesIO(b"\x00" * 4096)
        sound = SampleFile(stream, reporter=NullReporter())
        sound.read_file()

        assert sound.length() == 0

        sound.write_frames([1.0, 2.0])
        assert sound.length() == 2
        sound.write_file()

        assert len(stream.getvalue()) == 44 + 8
        sound.read_file()
        np.testing.assert_array_equal(sound.read_frames()[:, 0], [1.0, 2.0])

    def test_duplicate_data_chunk(self) -> None:
        data = wave_bytes(
            fmt_bytes(),
            chunk_bytes(b"data", float_bytes(1, 2)),
            chunk_bytes(b"data", float_bytes(3, 4, 5, 6)),
        )

        with pytest.raises(MalformedContainer, match="2 data chunks") as e:
            open_stream(data)

        assert e.value.offset == 52

    def test_reporter_sees_every_chunk(self) -> None:
        recorder = ChunkRecorder()
        data = wave_bytes(fmt_bytes(), chunk_bytes(b"LIST", b"abcd"), chunk_bytes(b"data", float_bytes(1)))

        open_stream(data, reporter=recorder)

        assert recorder.kind is ContainerKind.WAVE
        assert [row.tag for row in recorder.chunks] == ["fmt ", "LIST", "data"]
        assert [row.kind for row in recorder.chunks] == ["FormatChunk", "Chunk", "PayloadChunk"]


class TestSampleAddressing:
    """Tests for frame-indexed seek, position and length."""

    def make_sound(self, channels: int = 2, frames: int = 10) -> SampleFile:
        samples = np.arange(frames * channels, dtype=np.float32)
        data = wave_bytes(fmt_bytes(channels=channels), chunk_bytes(b"data", samples.astype("<f4").tobytes()))
        return open_stream(data)

    def test_seek_and_position_agree(self) -> None:
        sound = self.make_sound()
        assert sound.seek(7) == 7
        assert sound.position() == 7
        assert sound.file.position() == sound.payload_offset + 7 * 8

    def test_read_from_position(self) -> None:
        sound = self.make_sound(channels=2, frames=10)
        sound.seek(8)
        frames = sound.read_frames(5)
        np.testing.assert_array_equal(frames, [[16, 17], [18, 19]])
        assert sound.position() == 10

    def test_read_frames_shape_and_dtype(self) -> None:
        frames = self.make_sound(channels=3, frames=4).read_frames()
        assert frames.shape == (4, 3)
        assert frames.dtype == np.float32

    def test_read_at_end_returns_empty(self) -> None:
        sound = self.make_sound(frames=2)
        sound.seek(2)
        assert sound.read_frames().shape == (0, 2)

    def test_negative_position_is_clamped(self) -> None:
        sound = self.make_sound()
        sound.file.seek(10)

        assert sound.position() == 0
        assert sound.file.position() == sound.payload_offset

    def test_duration(self) -> None:
        sound = self.make_sound(frames=4410)
        assert sound.duration == pytest.approx(0.1)

    def test_partial_trailing_frame_not_counted(self) -> None:
        data = wave_bytes(fmt_bytes(channels=2), chunk_bytes(b"data", float_bytes(1, 2, 3)))
        sound = open_stream(data)
        assert sound.length() == 1


class TestWriteFrames:
    """Tests for frame encoding and shape checks."""

    def test_accepts_two_dimensional_frames(self) -> None:
        sound = SampleFile(reporter=NullReporter())
        sound.channel_count = 2
        assert sound.write_frames(np.ones((3, 2))) == 3
        assert sound.length() == 3

    def test_rejects_wrong_channel_count(self) -> None:
        sound = SampleFile(reporter=NullReporter())
        sound.channel_count = 2
        with pytest.raises(ValueError, match="shape"):
            sound.write_frames(np.ones((3, 3)))

    def test_rejects_uneven_interleaved_samples(self) -> None:
        sound = SampleFile(reporter=NullReporter())
        sound.channel_count = 2
        with pytest.raises(ValueError, match="do not divide"):
            sound.write_frames(np.ones(5))

    def test_little_endian_float32_encoding(self) -> None:
        stream = io.BytesIO()
        sound = SampleFile(stream, reporter=NullReporter())
        sound.write_frames([1.0])
        assert stream.getvalue()[44:48] == struct.pack("<f", 1.0)

    def test_overwrite_in_place(self) -> None:
        sound = SampleFile(reporter=NullReporter())
        sound.write_frames([1.0, 2.0, 3.0])
        sound.seek(1)
        sound.write_frames([9.0])
        sound.seek(0)
        np.testing.assert_array_equal(sound.read_frames()[:, 0], [1.0, 9.0, 3.0])

    @pytest.mark.parametrize("value", [0, -2])
    def test_rejects_non_positive_shape(self, value: int) -> None:
        sound = SampleFile(reporter=NullReporter())
        with pytest.raises(ValueError):
            sound.channel_count = value
        with pytest.raises(ValueError):
            sound.sample_rate = value


class TestWriteFile:
    """Tests for assembling and back-patching the container."""

    def test_sizes_are_back_patched(self) -> None:
        stream = io.BytesIO()
        sound = SampleFile(stream, reporter=NullReporter())
        sound.write_frames(np.zeros(10))
        sound.write_file()

        data = stream.getvalue()
        assert len(data) == 44 + 40
        assert struct.unpack("<I", data[4:8])[0] == len(data) - 8
        assert data[36:40] == b"data"
        assert struct.unpack("<I", data[40:44])[0] == 40

    def test_rewrite_after_append(self) -> None:
        stream = io.BytesIO()
        sound = SampleFile(stream, reporter=NullReporter())
        sound.write_frames(np.zeros(4))
        sound.write_file()

        sound.seek(sound.length())
        sound.write_frames(np.ones(2))
        sound.write_file()
        sound.read_file()

        np.testing.assert_array_equal(sound.read_frames()[:, 0], [0, 0, 0, 0, 1, 1])

    def test_custom_chunks_relocate_payload(self) -> None:
        stream = io.BytesIO()
        sound = SampleFile(stream, reporter=NullReporter())
        sound.write_frames([0.25, 0.5, 0.75])
        sound.write_file()
        assert sound.payload_offset == 44

        hooks = ChunkHooks(chunk_types={b"JSON": JsonChunk}, custom_chunks=[JsonChunk({"a": 1})])
        sound = SampleFile(stream, hooks=hooks, reporter=NullReporter())
        sound.read_file()
        sound.write_file()

        # {"a": 1} is 8 bytes
        assert sound.payload_offset == 44 + 16
        assert stream.getvalue()[36:40] == b"JSON"

        sound.read_file()
        np.testing.assert_array_equal(sound.read_frames()[:, 0], [0.25, 0.5, 0.75])

    def test_foreign_chunks_dropped_by_default(self) -> None:
        stream = io.BytesIO(
            wave_bytes(fmt_bytes(), chunk_bytes(b"LIST", b"abcd"), chunk_bytes(b"data", float_bytes(1, 2)))
        )
        sound = SampleFile(stream, reporter=NullReporter())
        sound.read_file()
        sound.write_file()

        assert b"LIST" not in stream.getvalue()
        assert sound.payload_offset == 44
        sound.read_file()
        np.testing.assert_array_equal(sound.read_frames()[:, 0], [1, 2])

    def test_trailing_chunks_bound_the_payload(self) -> None:
        stream = io.BytesIO(
            wave_bytes(fmt_bytes(), chunk_bytes(b"data", float_bytes(1, 2)), chunk_bytes(b"LIST", b"abcd"))
        )
        sound = SampleFile(stream, reporter=NullReporter())
        sound.read_file()

        assert sound.length() == 2
        sound.seek(2)
        with pytest.raises(RiffError, match="followed by other chunks"):
            sound.write_frames([3.0])

        sound.write_file()
        assert len(stream.getvalue()) == 44 + 8

        sound.seek(2)
        sound.write_frames([3.0])
        assert sound.length() == 3

    def test_pad_byte_not_counted_as_payload(self) -> None:
        stream = io.BytesIO(wave_bytes(fmt_bytes(), chunk_bytes(b"data", float_bytes(1) + b"\x00")))
        sound = SampleFile(stream, reporter=NullReporter())
        sound.read_file()

        assert len(stream.getvalue()) == 44 + 6
        assert sound.length() == 1

        sound.write_file()

        data = stream.getvalue()
        assert len(data) == 44 + 5
        assert struct.unpack("<I", data[40:44])[0] == 5
        assert struct.unpack("<I", data[4:8])[0] == len(data) - 8

    def test_frames_may_extend_past_pad_byte(self) -> None:
        stream = io.BytesIO(wave_bytes(fmt_bytes(), chunk_bytes(b"data", float_bytes(1) + b"\x00")))
        sound = SampleFile(stream, reporter=NullReporter())
        sound.read_file()

        sound.seek(1)
        sound.write_frames([2.0])
        sound.write_file()

        assert struct.unpack("<I", stream.getvalue()[40:44])[0] == 8
        sound.read_file()
        np.testing.assert_array_equal(sound.read_frames()[:, 0], [1.0, 2.0])

    def test_aiff_cannot_be_written(self) -> None:
        sound = SampleFile(reporter=NullReporter())
        sound.info.kind = ContainerKind.AIFF
        with pytest.raises(UnsupportedContainerKind):
            sound.write_file()

    def test_read_only_stream_reports_error(self, tmp_path: Path) -> None:
        path = tmp_path / "readonly.wav"
        path.write_bytes(wave_bytes(fmt_bytes(), chunk_bytes(b"data", float_bytes(1))))
        recorder = ChunkRecorder()

        with SampleFile.open(path, reporter=recorder) as sound:
            with pytest.raises(StreamWriteError):
                sound.write_file()

        assert len(recorder.errors) == 1


class TestFileLifecycle:
    """Tests for opening and closing files on disk."""

    def test_close_writes_pending_frames(self, tmp_path: Path) -> None:
        path = tmp_path / "tone.wav"
        t = np.arange(480) / 48000
        tone = np.sin(2 * np.pi * 1000 * t).astype(np.float32)

        with SampleFile.open(path, "w", reporter=NullReporter()) as sound:
            sound.sample_rate = 48000
            sound.write_frames(tone)

        with SampleFile.open(path, reporter=NullReporter()) as sound:
            assert sound.path == path
            assert sound.sample_rate == 48000
            assert sound.length() == 480
            np.testing.assert_array_equal(sound.read_frames()[:, 0], tone)

    def test_update_in_place(self, tmp_path: Path) -> None:
        path = tmp_path / "update.wav"
        with SampleFile.open(path, "w", reporter=NullReporter()) as sound:
            sound.write_frames([0.0, 0.0])

        with SampleFile.open(path, "r+", reporter=NullReporter()) as sound:
            sound.seek(1)
            sound.write_frames([0.5])

        with SampleFile.open(path, reporter=NullReporter()) as sound:
            np.testing.assert_array_equal(sound.read_frames()[:, 0], [0.0, 0.5])

    def test_create_without_frames_writes_empty_container(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.wav"

        with SampleFile.open(path, "w", reporter=NullReporter()) as sound:
            sound.channel_count = 2

        data = path.read_bytes()
        assert data[:4] == b"RIFF"
        assert len(data) == 44
        with SampleFile.open(path, reporter=NullReporter()) as sound:
            assert sound.channel_count == 2
            assert sound.length() == 0

    def test_shape_change_saved_on_close(self, tmp_path: Path) -> None:
        path = tmp_path / "rate.wav"
        with SampleFile.open(path, "w", reporter=NullReporter()) as sound:
            sound.write_frames([0.25])

        with SampleFile.open(path, "r+", reporter=NullReporter()) as sound:
            sound.sample_rate = 48000

        with SampleFile.open(path, reporter=NullReporter()) as sound:
            assert sound.sample_rate == 48000
            np.testing.assert_array_equal(sound.read_frames()[:, 0], [0.25])

    def test_open_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(RiffError, match="File not found"):
            SampleFile.open(tmp_path / "missing.wav")

    def test_failed_open_closes_stream(self, tmp_path: Path) -> None:
        path = tmp_path / "garbage.wav"
        path.write_bytes(b"garbage!" * 4)

        with pytest.raises(UnrecognizedFileType):
            SampleFile.open(path)

    def test_close_leaves_caller_stream_open(self) -> None:
        stream = io.BytesIO()
        sound = SampleFile(stream, reporter=NullReporter())
        sound.write_frames([1.0])
        sound.close()

        assert not stream.closed
        assert stream.getvalue()[:4] == b"RIFF"
