"""Byte-oriented access to a seekable binary stream.

All positions are absolute from the start of the stream. The cursor is the
only shared state, so one ByteFile must not be driven from two places at
once while a read or write sequence is in progress.
"""

import io
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

from riffchunk.chunks import Chunk
from riffchunk.errors import (
    MalformedContainer,
    RiffError,
    StreamWriteError,
    UnexpectedEndOfFile,
)
from riffchunk.fields import ByteField
from riffchunk.types import CHUNK_HEADER_SIZE

_OPEN_MODES = {
    "r": "rb",
    "r+": "r+b",
    "w": "w+b",
}


class ByteFile:
    """Seekable read/write of fixed-width fields over a binary stream."""

    def __init__(self, stream: BinaryIO | None = None) -> None:
        self.stream: BinaryIO = stream if stream is not None else io.BytesIO()
        self.path: Path | None = None
        self._owns_stream = False

    @classmethod
    def open(cls, path: Path | str, mode: str = "r") -> "ByteFile":
        """Open a file on disk.

        Args:
            path: Path to the file.
            mode: ``"r"`` to read, ``"r+"`` to update in place, ``"w"`` to
                create or truncate.

        Raises:
            RiffError: If the file cannot be opened.
        """
        path = Path(path)
        try:
            file_mode = _OPEN_MODES[mode]
        except KeyError:
            raise ValueError(f"Unknown mode {mode!r}, expected one of {sorted(_OPEN_MODES)}") from None

        try:
            stream = open(path, file_mode)
        except FileNotFoundError as e:
            raise RiffError(f"File not found: {path}") from e
        except OSError as e:
            raise RiffError(f"Cannot open file: {path}") from e

        instance = cls(stream)
        instance.path = path
        instance._owns_stream = True
        return instance

    def close(self) -> None:
        if self._owns_stream and not self.stream.closed:
            self.stream.close()

    def __enter__(self) -> "ByteFile":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.path or self.stream!r})>"

    def writable(self) -> bool:
        return not self.stream.closed and self.stream.writable()

    def seek(self, position: int) -> int:
        """Move the cursor to an absolute byte position and return where it landed."""
        if position < 0:
            raise ValueError(f"Cannot seek to negative byte position {position}")
        return self.stream.seek(position)

    def position(self) -> int:
        return self.stream.tell()

    def size(self) -> int:
        """Length of the stream in bytes; the cursor is left where it was."""
        current = self.stream.tell()
        end = self.stream.seek(0, io.SEEK_END)
        self.stream.seek(current)
        return end

    def read(self, n: int) -> bytes:
        return self.stream.read(n)

    def read_exact(self, n: int) -> bytes:
        position = self.position()
        data = self.stream.read(n)
        if len(data) != n:
            raise UnexpectedEndOfFile(position, n, len(data))
        return data

    def write(self, data: bytes) -> int:
        position = self.position()
        try:
            written = self.stream.write(data)
        except OSError as e:
            raise StreamWriteError(f"Failed writing {len(data)} bytes at {position}: {e}", position) from e
        if written is not None and written != len(data):
            raise StreamWriteError(
                f"Short write at {position}: {written} of {len(data)} bytes", position
            )
        return len(data)

    def truncate(self, size: int) -> None:
        try:
            self.stream.truncate(size)
        except OSError as e:
            raise StreamWriteError(f"Failed truncating stream to {size} bytes: {e}", size) from e

    def flush(self) -> None:
        try:
            self.stream.flush()
        except OSError as e:
            raise StreamWriteError(f"Failed flushing stream: {e}") from e

    def read_bytes(self, field: ByteField) -> None:
        field.raw = self.read_exact(field.width)

    def write_bytes(self, field: ByteField) -> None:
        self.write(field.raw)

    def read_chunk(self) -> Chunk:
        """Read a generic chunk descriptor (tag and size) at the cursor."""
        chunk = Chunk()
        chunk.read(self)
        return chunk

    def chunks_in_range(self, start: int, end: int) -> Iterator[Chunk]:
        """Scan the generic chunks laid out in ``[start, end)``.

        Each chunk's own size says how far to skip, so unknown payloads are
        never interpreted. Odd-sized payloads are followed by a pad byte when
        it lies inside the range.

        Raises:
            MalformedContainer: If a chunk crosses ``end`` or the end of the
                stream, or if fewer than 8 bytes remain for a chunk header.
        """
        stream_end = self.size()
        position = start
        while position < end:
            if end - position < CHUNK_HEADER_SIZE:
                raise MalformedContainer(
                    f"{end - position} trailing bytes at {position} cannot hold a chunk header",
                    offset=position,
                    bound=end,
                )

            self.seek(position)
            chunk = self.read_chunk()
            chunk_end = chunk.end
            if chunk_end > end or chunk_end > stream_end:
                raise MalformedContainer(
                    f"Chunk {chunk.tag.raw!r} at {chunk.offset} ends at {chunk_end}, "
                    f"past its bound of {min(end, stream_end)}",
                    tag=chunk.tag.raw,
                    offset=chunk.offset,
                    end=chunk_end,
                    bound=min(end, stream_end),
                )

            yield chunk

            position = chunk_end
            if chunk.size.as_int() % 2 and position < end:
                position += 1
