"""Sample-indexed access to WAVE files.

SampleFile sits on top of a ByteFile and addresses the stream in sample
frames instead of bytes. ``read_file`` scans the container once to learn the
stream shape and where the samples start; ``write_file`` assembles a fresh
container around the samples already in the stream and back-patches the
sizes. The chunk tree only lives for the duration of those two calls.

Example:
    >>> import numpy as np
    >>> from riffchunk import SampleFile
    >>> with SampleFile.open("tone.wav", "w") as sound:
    ...     sound.channel_count = 2
    ...     sound.sample_rate = 48000
    ...     sound.write_frames(np.zeros((480, 2), dtype=np.float32))
    >>> with SampleFile.open("tone.wav") as sound:
    ...     frames = sound.read_frames()
"""

from pathlib import Path
from typing import BinaryIO

import numpy as np
from numpy.typing import ArrayLike, NDArray

from riffchunk.bytefile import ByteFile
from riffchunk.chunks import FormatChunk, HeaderChunk, PayloadChunk, promote
from riffchunk.errors import (
    MalformedContainer,
    RiffError,
    StreamWriteError,
    UnrecognizedFileType,
    UnsupportedContainerKind,
)
from riffchunk.hooks import ChunkHooks
from riffchunk.reporting import LoggingReporter, Reporter
from riffchunk.types import (
    AIFF_ID,
    BYTES_PER_SAMPLE,
    CHUNK_HEADER_SIZE,
    DATA_ID,
    FMT_ID,
    FORM_ID,
    RIFF_ID,
    WAVE_ID,
    ContainerKind,
    SoundInfo,
)

SAMPLE_DTYPE = np.dtype("<f4")


class SampleFile:
    """A WAVE file of interleaved 32-bit float frames addressed by frame index."""

    bytes_per_sample = BYTES_PER_SAMPLE

    def __init__(
        self,
        file: ByteFile | BinaryIO | None = None,
        *,
        hooks: ChunkHooks | None = None,
        reporter: Reporter | None = None,
    ) -> None:
        self.file = file if isinstance(file, ByteFile) else ByteFile(file)
        self.info = SoundInfo()
        self.hooks = hooks if hooks is not None else ChunkHooks()
        self.reporter: Reporter = reporter if reporter is not None else LoggingReporter()
        self.payload_offset = self._assemble_header()[1].payload_offset
        self._payload_end: int | None = None
        self._chunks_follow_payload = False
        self._dirty = False

    @classmethod
    def open(
        cls,
        path: Path | str,
        mode: str = "r",
        *,
        hooks: ChunkHooks | None = None,
        reporter: Reporter | None = None,
    ) -> "SampleFile":
        """Open a file on disk, reading its container unless it is being created.

        Args:
            path: Path to the WAV file.
            mode: ``"r"`` to read, ``"r+"`` to update, ``"w"`` to create.
            hooks: Custom chunk extension points.
            reporter: Observer for diagnostic checkpoints.

        Raises:
            RiffError: If the file cannot be opened or parsed.
        """
        sound = cls(ByteFile.open(path, mode), hooks=hooks, reporter=reporter)
        if mode == "w":
            # an empty container is still written on close
            sound._dirty = True
        else:
            try:
                sound.read_file()
            except Exception:
                sound.file.close()
                raise
        return sound

    def close(self) -> None:
        """Back-patch pending frames, then release the stream if we opened it."""
        try:
            if self._dirty and self.file.writable():
                self.write_file()
        finally:
            self.file.close()

    def __enter__(self) -> "SampleFile":
        return self

    def __exit__(self, exc_type: type[BaseException] | None, *exc_info: object) -> None:
        if exc_type is None:
            self.close()
        else:
            self.file.close()

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__}({self.path or '<stream>'}, "
            f"{self.info.kind.display_name}, channels={self.info.channels}, "
            f"sample_rate={self.info.sample_rate})>"
        )

    @property
    def path(self) -> Path | None:
        return self.file.path

    @property
    def container_kind(self) -> ContainerKind:
        return self.info.kind

    @property
    def channel_count(self) -> int:
        return self.info.channels

    @channel_count.setter
    def channel_count(self, value: int) -> None:
        if value <= 0:
            raise ValueError(f"channel_count must be positive, got {value}")
        self.info.channels = value
        self._dirty = True

    @property
    def sample_rate(self) -> int:
        return self.info.sample_rate

    @sample_rate.setter
    def sample_rate(self, value: int) -> None:
        if value <= 0:
            raise ValueError(f"sample_rate must be positive, got {value}")
        self.info.sample_rate = value
        self._dirty = True

    @property
    def sample_width(self) -> int:
        """Bytes in one frame across all channels."""
        return self.info.channels * self.bytes_per_sample

    @property
    def duration(self) -> float:
        return self.length() / self.info.sample_rate

    def _assemble_header(self, payload_size: int = 0) -> tuple[HeaderChunk, PayloadChunk]:
        header = HeaderChunk(RIFF_ID, format=WAVE_ID)
        header.chunks.append(FormatChunk())
        header.chunks.extend(self.hooks.provide_custom_chunks())
        data = PayloadChunk(size=payload_size)
        header.chunks.append(data)
        header.layout()
        return header, data

    def _identify(self) -> ContainerKind:
        self.file.seek(0)
        header = HeaderChunk()
        self.file.read_bytes(header.tag)
        self.file.read_bytes(header.size)
        self.file.read_bytes(header.format)

        if header.tag.matches(RIFF_ID) and header.format.matches(WAVE_ID):
            return ContainerKind.WAVE
        if header.tag.matches(FORM_ID) and header.format.matches(AIFF_ID):
            return ContainerKind.AIFF
        raise UnrecognizedFileType(header.tag.raw, header.format.raw)

    def _create_file(self) -> None:
        """Start a new, empty Wave file with the current shape."""
        self.info.kind = ContainerKind.WAVE
        self.payload_offset = self._assemble_header()[1].payload_offset
        # whatever already sits in the stream is not payload
        self._payload_end = self.payload_offset
        self._chunks_follow_payload = False
        self.reporter.container_recognized(self.info.kind, self.path)
        self.reporter.operation_complete("create", 0)
        self.seek(0)

    def read_file(self) -> None:
        """Scan the container and learn the stream shape and payload offset.

        An empty stream, or one whose first tag is all zeros, is treated as a
        brand-new file rather than an error.

        Raises:
            UnrecognizedFileType: If the header is neither RIFF/WAVE nor FORM/AIFF.
            UnsupportedContainerKind: If the header is FORM/AIFF.
            UnsupportedEncoding: If the samples are not IEEE float.
            UnsupportedBitDepth: If the samples are not 32-bit.
            MalformedContainer: If a chunk overruns its bound, the ``fmt ``
                chunk is missing, or there is not exactly one ``data`` chunk.
        """
        self.file.seek(0)
        if not any(self.file.read(4)):
            self._create_file()
            return

        kind = self._identify()
        self.info.kind = kind
        if kind is not ContainerKind.WAVE:
            raise UnsupportedContainerKind(kind)

        self.reporter.container_recognized(kind, self.path)

        self.file.seek(0)
        header = HeaderChunk()
        header.read(self.file, self)

        self.hooks.scan_started()
        for index, chunk in enumerate(header.chunks):
            promoted = promote(chunk)
            if promoted is chunk:
                promoted = self.hooks.adopt_custom_chunk(chunk)
            header.chunks[index] = promoted

            # re-read as the promoted type
            self.file.seek(promoted.offset)
            promoted.read(self.file, self)
            self.reporter.chunk_processed(promoted)

        if not any(isinstance(chunk, FormatChunk) for chunk in header.chunks):
            raise MalformedContainer("Wave file has no fmt chunk", tag=FMT_ID)
        payloads = [chunk for chunk in header.chunks if isinstance(chunk, PayloadChunk)]
        if not payloads:
            raise MalformedContainer("Wave file has no data chunk", tag=DATA_ID)
        if len(payloads) > 1:
            raise MalformedContainer(
                f"Wave file has {len(payloads)} data chunks, expected one",
                tag=DATA_ID,
                offset=payloads[1].offset,
            )
        data = payloads[0]

        trailing = self.file.size() - data.end
        self._payload_end = data.end if trailing else None
        # a single pad byte is not a chunk
        self._chunks_follow_payload = trailing > 1
        self._dirty = False

        self.reporter.operation_complete("read", len(header.chunks))
        self.seek(0)

    def write_file(self) -> None:
        """Write a fresh Wave container around the samples in the stream.

        The layout is ``fmt ``, then the hooks' custom chunks, then ``data``.
        If that layout moves the start of the samples, the sample bytes are
        moved with it. The ``data`` and ``RIFF`` sizes are back-patched from
        the final stream length and the cursor is left at frame 0.

        Raises:
            UnsupportedContainerKind: If the file is an AIFF container.
            StreamWriteError: If the stream rejects the write.
        """
        if self.info.kind is ContainerKind.AIFF:
            raise UnsupportedContainerKind(self.info.kind)
        self.info.kind = ContainerKind.WAVE

        payload_end = self._payload_end if self._payload_end is not None else self.file.size()
        payload_size = max(0, payload_end - self.payload_offset)
        header, data = self._assemble_header(payload_size)

        relocate = data.payload_offset != self.payload_offset or self._payload_end is not None
        payload = b""
        if relocate and payload_size:
            self.file.seek(self.payload_offset)
            payload = self.file.read_exact(payload_size)

        self.reporter.container_recognized(self.info.kind, self.path)
        try:
            self.file.seek(0)
            header.write(self.file, self)
            if relocate:
                self.file.seek(self.payload_offset)
                self.file.write(payload)
                self.file.truncate(self.payload_offset + len(payload))
            self._payload_end = None
            self._chunks_follow_payload = False

            stream_length = self.file.size()
            data.patch_size(self.file, stream_length - self.payload_offset)
            header.patch_size(self.file, stream_length - CHUNK_HEADER_SIZE)
            self.file.flush()
        except StreamWriteError as e:
            self.reporter.stream_error(e.message)
            raise

        for chunk in header.chunks:
            self.reporter.chunk_processed(chunk)
        self.reporter.operation_complete("write", len(header.chunks))

        self._dirty = False
        self.seek(0)

    def seek(self, sample: int) -> int:
        """Move to a frame index and return the frame index reached."""
        reached = self.file.seek(self.payload_offset + sample * self.sample_width)
        return (reached - self.payload_offset) // self.sample_width

    def position(self) -> int:
        """Current frame index, never negative.

        A cursor sitting before the samples (inside the header) is moved to
        frame 0.
        """
        index = (self.file.position() - self.payload_offset) // self.sample_width
        if index < 0:
            self.seek(0)
            return 0
        return index

    def length(self) -> int:
        """Number of whole frames in the payload."""
        end = self._payload_end if self._payload_end is not None else self.file.size()
        return max(0, (end - self.payload_offset) // self.sample_width)

    def read_frames(self, count: int | None = None) -> NDArray[np.float32]:
        """Read frames from the current position.

        Args:
            count: Frames to read; all remaining frames when None. Reads stop
                at the end of the payload.

        Returns:
            Array of shape (frames, channels).
        """
        start = self.position()
        available = max(0, self.length() - start)
        if count is None or count > available:
            count = available
        if count < 0:
            raise ValueError(f"Cannot read a negative number of frames: {count}")

        data = self.file.read_exact(count * self.sample_width)
        samples = np.frombuffer(data, dtype=SAMPLE_DTYPE).astype(np.float32)
        return samples.reshape(count, self.info.channels)

    def write_frames(self, frames: ArrayLike) -> int:
        """Write frames at the current position.

        Args:
            frames: Array of shape (frames, channels), or flat interleaved
                samples whose length is a multiple of the channel count.

        Returns:
            The number of frames written.

        Raises:
            ValueError: If the data does not match the channel count.
            RiffError: If the write would run into chunks that follow the samples.
        """
        channels = self.info.channels
        array = np.asarray(frames, dtype=np.float32)
        if array.ndim == 1:
            if array.size % channels:
                raise ValueError(
                    f"{array.size} interleaved samples do not divide into {channels} channels"
                )
            array = array.reshape(-1, channels)
        elif array.ndim != 2 or array.shape[1] != channels:
            raise ValueError(f"Expected frames of shape (n, {channels}), got {array.shape}")

        count = array.shape[0]
        start = self.position()
        end = self.payload_offset + (start + count) * self.sample_width
        if self._chunks_follow_payload and self._payload_end is not None and end > self._payload_end:
            raise RiffError(
                "Samples are followed by other chunks; call write_file() before appending frames"
            )

        self.file.write(array.astype(SAMPLE_DTYPE).tobytes())
        if self._payload_end is not None and end > self._payload_end:
            self._payload_end = end
        self._dirty = True
        return count
