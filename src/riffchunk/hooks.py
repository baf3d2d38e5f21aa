"""Extension points for application-specific chunks.

The codec consults a ChunkHooks instance at two moments:

- while reading, for each child chunk whose tag the codec does not know,
  ``adopt_custom_chunk`` may promote it to an application type;
- while writing, ``provide_custom_chunks`` supplies the chunks to place
  between the ``fmt `` and ``data`` chunks.

Chunks that are neither adopted nor provided are dropped on write. Use
PreservingHooks to carry every foreign chunk from a read over to the next
write.
"""

from collections.abc import Iterable, Mapping, Sequence

from riffchunk.chunks import Chunk, RawChunk, promote


class ChunkHooks:
    """Default hooks: promote tags listed in ``chunk_types``, write ``custom_chunks``."""

    def __init__(
        self,
        chunk_types: Mapping[bytes, type[Chunk]] | None = None,
        custom_chunks: Iterable[Chunk] = (),
    ) -> None:
        self.chunk_types: dict[bytes, type[Chunk]] = dict(chunk_types or {})
        self.custom_chunks: list[Chunk] = list(custom_chunks)

    def scan_started(self) -> None:
        """Called before the children of a container are adopted."""

    def adopt_custom_chunk(self, chunk: Chunk) -> Chunk:
        return promote(chunk, self.chunk_types)

    def provide_custom_chunks(self) -> Sequence[Chunk]:
        return list(self.custom_chunks)


class PreservingHooks(ChunkHooks):
    """Hooks that keep every unrecognized chunk and write it back.

    Chunks without a registered type are kept as RawChunk so their payload
    survives a read/write cycle byte for byte.
    """

    def __init__(
        self,
        chunk_types: Mapping[bytes, type[Chunk]] | None = None,
        custom_chunks: Iterable[Chunk] = (),
    ) -> None:
        super().__init__(chunk_types, custom_chunks)
        self.preserved: list[Chunk] = []

    def scan_started(self) -> None:
        self.preserved.clear()

    def adopt_custom_chunk(self, chunk: Chunk) -> Chunk:
        adopted = super().adopt_custom_chunk(chunk)
        if type(adopted) is Chunk:
            adopted = RawChunk.from_generic(chunk)
        self.preserved.append(adopted)
        return adopted

    def provide_custom_chunks(self) -> Sequence[Chunk]:
        return [*super().provide_custom_chunks(), *self.preserved]
