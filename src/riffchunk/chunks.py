"""Chunk records for RIFF containers.

A chunk is discovered in two phases. The scanner first reads a generic
descriptor holding only the tag, the size and the offset. The descriptor is
then promoted: its tag is looked up in a closed table of specialized types,
and a matching type is built from the descriptor and re-reads its own
fields from the payload start. Tags missing from the table stay generic.

Layout of every chunk on disk::

    offset + 0   tag    4 bytes, ASCII
    offset + 4   size   4 bytes, little-endian, payload length
    offset + 8   payload (size bytes, plus a pad byte if size is odd)
"""

import json
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, TypeVar

from riffchunk.errors import MalformedContainer, UnsupportedBitDepth, UnsupportedEncoding
from riffchunk.fields import ByteField
from riffchunk.types import (
    BITS_PER_SAMPLE,
    CHUNK_HEADER_SIZE,
    DATA_ID,
    FMT_ID,
    FMT_PAYLOAD_SIZE,
    JSON_ID,
    RIFF_ID,
    WAVE_FORMAT_IEEE_FLOAT,
    WAVE_ID,
)

if TYPE_CHECKING:
    from riffchunk.bytefile import ByteFile
    from riffchunk.samplefile import SampleFile

ChunkT = TypeVar("ChunkT", bound="Chunk")


class Chunk:
    """Generic chunk: tag, payload size and offset of the tag's first byte.

    A generic chunk does not model its payload. Writing one emits only the
    8-byte header and leaves the payload bytes already in the stream alone.
    """

    default_tag: bytes = b"\x00\x00\x00\x00"

    def __init__(self, tag: bytes | None = None, size: int = 0, offset: int = 0) -> None:
        self.tag = ByteField.tag(tag if tag is not None else self.default_tag)
        self.size = ByteField(4, size)
        self.offset = offset

    @classmethod
    def from_generic(cls: type[ChunkT], chunk: "Chunk") -> ChunkT:
        """Build this type from an already scanned descriptor, keeping tag, size and offset."""
        promoted = cls()
        promoted.tag.raw = chunk.tag.raw
        promoted.size.raw = chunk.size.raw
        promoted.offset = chunk.offset
        return promoted

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__}(tag={self.tag.raw!r}, "
            f"offset={self.offset}, size={self.size.as_int()})>"
        )

    @property
    def payload_offset(self) -> int:
        return self.offset + CHUNK_HEADER_SIZE

    @property
    def end(self) -> int:
        """First byte after the payload, excluding padding."""
        return self.payload_offset + self.size.as_int()

    @property
    def extent(self) -> int:
        """Bytes the chunk occupies on disk, including the pad byte."""
        size = self.size.as_int()
        return CHUNK_HEADER_SIZE + size + size % 2

    def update_size(self) -> None:
        """Set ``size`` from the fields about to be written."""

    def read(self, file: "ByteFile", owner: "SampleFile | None" = None) -> None:
        self.offset = file.position()
        file.read_bytes(self.tag)
        file.read_bytes(self.size)
        self.read_fields(file, owner)

    def read_fields(self, file: "ByteFile", owner: "SampleFile | None" = None) -> None:
        pass

    def write(self, file: "ByteFile", owner: "SampleFile | None" = None) -> None:
        self.offset = file.position()
        self.update_size()
        file.write_bytes(self.tag)
        file.write_bytes(self.size)
        self.write_fields(file, owner)

    def write_fields(self, file: "ByteFile", owner: "SampleFile | None" = None) -> None:
        pass

    def patch_size(self, file: "ByteFile", size: int) -> None:
        """Back-patch the size field on disk, restoring the cursor afterwards."""
        self.size.set_int(size)
        current = file.position()
        file.seek(self.offset + 4)
        file.write_bytes(self.size)
        file.seek(current)


class HeaderChunk(Chunk):
    """Container chunk: a format tag followed by a bounded run of child chunks."""

    default_tag = RIFF_ID

    def __init__(self, tag: bytes | None = None, size: int = 0, offset: int = 0, format: bytes = WAVE_ID) -> None:
        super().__init__(tag, size, offset)
        self.format = ByteField.tag(format)
        self.chunks: list[Chunk] = []

    def update_size(self) -> None:
        for chunk in self.chunks:
            chunk.update_size()
        self.size.set_int(4 + sum(chunk.extent for chunk in self.chunks))

    def layout(self, offset: int = 0) -> int:
        """Assign offsets to the children without touching the stream.

        Returns:
            The total extent of the container.
        """
        self.offset = offset
        self.update_size()
        position = offset + CHUNK_HEADER_SIZE + 4
        for chunk in self.chunks:
            chunk.offset = position
            position += chunk.extent
        return position - offset

    def read_fields(self, file: "ByteFile", owner: "SampleFile | None" = None) -> None:
        file.read_bytes(self.format)
        if self.end > file.size():
            raise MalformedContainer(
                f"Container {self.tag.raw!r} declares {self.size.as_int()} bytes, "
                f"past the end of the stream at {file.size()}",
                tag=self.tag.raw,
                offset=self.offset,
                end=self.end,
                bound=file.size(),
            )
        start = self.offset + CHUNK_HEADER_SIZE + 4
        self.chunks = list(file.chunks_in_range(start, self.end))

    def write_fields(self, file: "ByteFile", owner: "SampleFile | None" = None) -> None:
        file.write_bytes(self.format)
        position = file.position()
        for chunk in self.chunks:
            file.seek(position)
            chunk.write(file, owner)
            position = chunk.offset + chunk.extent


class FormatChunk(Chunk):
    """The ``fmt `` chunk describing the sample stream.

    Only 32-bit IEEE float is accepted on read. ``byte_rate`` and
    ``block_align`` are recomputed on every write and never trusted on read.
    """

    default_tag = FMT_ID

    def __init__(self, tag: bytes | None = None, size: int = FMT_PAYLOAD_SIZE, offset: int = 0) -> None:
        super().__init__(tag, size, offset)
        self.encoding_tag = ByteField(2, WAVE_FORMAT_IEEE_FLOAT)
        self.channel_count = ByteField(2)
        self.sample_rate = ByteField(4)
        self.byte_rate = ByteField(4)
        self.block_align = ByteField(2)
        self.bits_per_sample = ByteField(2)

    def fields(self) -> list[ByteField]:
        return [
            self.encoding_tag,
            self.channel_count,
            self.sample_rate,
            self.byte_rate,
            self.block_align,
            self.bits_per_sample,
        ]

    def update_size(self) -> None:
        self.size.set_int(FMT_PAYLOAD_SIZE)

    def read_fields(self, file: "ByteFile", owner: "SampleFile | None" = None) -> None:
        if self.size.as_int() < FMT_PAYLOAD_SIZE:
            raise MalformedContainer(
                f"fmt chunk at {self.offset} holds {self.size.as_int()} bytes, "
                f"at least {FMT_PAYLOAD_SIZE} are required",
                tag=self.tag.raw,
                offset=self.offset,
                end=self.end,
            )

        for field in self.fields():
            file.read_bytes(field)

        encoding = self.encoding_tag.as_int()
        if encoding != WAVE_FORMAT_IEEE_FLOAT:
            raise UnsupportedEncoding(WAVE_FORMAT_IEEE_FLOAT, encoding)

        bits = self.bits_per_sample.as_int()
        if bits != BITS_PER_SAMPLE:
            raise UnsupportedBitDepth(BITS_PER_SAMPLE, bits)

        if self.channel_count.as_int() == 0:
            raise MalformedContainer(
                f"fmt chunk at {self.offset} declares zero channels",
                tag=self.tag.raw,
                offset=self.offset,
            )

        if self.sample_rate.as_int() == 0:
            raise MalformedContainer(
                f"fmt chunk at {self.offset} declares a sample rate of zero",
                tag=self.tag.raw,
                offset=self.offset,
            )

        if owner is not None:
            owner.info.channels = self.channel_count.as_int()
            owner.info.sample_rate = self.sample_rate.as_int()

    def write_fields(self, file: "ByteFile", owner: "SampleFile | None" = None) -> None:
        if owner is not None:
            self.channel_count.set_int(owner.info.channels)
            self.sample_rate.set_int(owner.info.sample_rate)
            self.bits_per_sample.set_int(owner.bytes_per_sample * 8)
        self.encoding_tag.set_int(WAVE_FORMAT_IEEE_FLOAT)

        channels = self.channel_count.as_int()
        bits = self.bits_per_sample.as_int()
        self.byte_rate.set_int(self.sample_rate.as_int() * channels * bits // 8)
        self.block_align.set_int(channels * bits // 8)

        for field in self.fields():
            file.write_bytes(field)


class PayloadChunk(Chunk):
    """The ``data`` chunk. It only records where the samples begin.

    The scanner skips the sample bytes using ``size``; on write the owner
    back-patches ``size`` once every sample has been appended.
    """

    default_tag = DATA_ID

    @property
    def extent(self) -> int:
        # always last in the container, never padded
        return CHUNK_HEADER_SIZE + self.size.as_int()

    def read_fields(self, file: "ByteFile", owner: "SampleFile | None" = None) -> None:
        if owner is not None:
            owner.payload_offset = self.payload_offset

    def write_fields(self, file: "ByteFile", owner: "SampleFile | None" = None) -> None:
        if owner is not None:
            owner.payload_offset = self.payload_offset


class RawChunk(Chunk):
    """Chunk that keeps its payload as opaque bytes so it can be written back."""

    def __init__(self, tag: bytes | None = None, size: int = 0, offset: int = 0, payload: bytes = b"") -> None:
        super().__init__(tag, size, offset)
        self.payload = payload
        if payload:
            self.size.set_int(len(payload))

    def update_size(self) -> None:
        self.size.set_int(len(self.payload))

    def read_fields(self, file: "ByteFile", owner: "SampleFile | None" = None) -> None:
        self.payload = file.read_exact(self.size.as_int())

    def write_fields(self, file: "ByteFile", owner: "SampleFile | None" = None) -> None:
        file.write(self.payload)
        if len(self.payload) % 2:
            file.write(b"\x00")


class JsonChunk(RawChunk):
    """Application chunk carrying a UTF-8 encoded JSON object."""

    default_tag = JSON_ID

    def __init__(
        self,
        data: Mapping[str, Any] | None = None,
        tag: bytes | None = None,
        size: int = 0,
        offset: int = 0,
    ) -> None:
        super().__init__(tag, size, offset)
        self.data: dict[str, Any] = dict(data or {})

    def update_size(self) -> None:
        self.payload = json.dumps(self.data, sort_keys=True).encode("utf-8")
        super().update_size()

    def read_fields(self, file: "ByteFile", owner: "SampleFile | None" = None) -> None:
        super().read_fields(file, owner)
        try:
            data = json.loads(self.payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MalformedContainer(
                f"Chunk {self.tag.raw!r} at {self.offset} does not hold valid JSON",
                tag=self.tag.raw,
                offset=self.offset,
            ) from e
        if not isinstance(data, dict):
            raise MalformedContainer(
                f"Chunk {self.tag.raw!r} at {self.offset} holds JSON {type(data).__name__}, expected an object",
                tag=self.tag.raw,
                offset=self.offset,
            )
        self.data = data


CHUNK_TYPES: Mapping[bytes, type[Chunk]] = {
    FMT_ID: FormatChunk,
    DATA_ID: PayloadChunk,
}
"""Chunk types the codec itself understands, keyed by tag."""


def promote(chunk: Chunk, table: Mapping[bytes, type[Chunk]] = CHUNK_TYPES) -> Chunk:
    """Replace a generic descriptor with the specialized type registered for its tag.

    Unregistered tags, and chunks that already are the registered type, are
    returned unchanged.
    """
    chunk_type = table.get(chunk.tag.raw)
    if chunk_type is None or type(chunk) is chunk_type:
        return chunk
    return chunk_type.from_generic(chunk)
