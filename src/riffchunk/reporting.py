"""Diagnostic observers for read and write operations.

The codec never logs on its own. A SampleFile calls its reporter at fixed
checkpoints and the reporter decides what to do with them.
"""

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Protocol

from riffchunk.chunks import Chunk
from riffchunk.types import ContainerKind

logger = logging.getLogger("riffchunk")


@dataclass
class ChunkSummary:
    """One processed chunk, as shown by the command line."""

    tag: str
    offset: int
    size: int
    kind: str

    @classmethod
    def from_chunk(cls, chunk: Chunk) -> "ChunkSummary":
        return cls(
            tag=chunk.tag.as_tag(),
            offset=chunk.offset,
            size=chunk.size.as_int(),
            kind=type(chunk).__name__,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class Reporter(Protocol):
    def container_recognized(self, kind: ContainerKind, path: Path | None) -> None: ...

    def chunk_processed(self, chunk: Chunk) -> None: ...

    def operation_complete(self, operation: str, chunk_count: int) -> None: ...

    def stream_error(self, message: str) -> None: ...


class NullReporter:
    """Ignores every checkpoint."""

    def container_recognized(self, kind: ContainerKind, path: Path | None) -> None:
        pass

    def chunk_processed(self, chunk: Chunk) -> None:
        pass

    def operation_complete(self, operation: str, chunk_count: int) -> None:
        pass

    def stream_error(self, message: str) -> None:
        pass


class LoggingReporter:
    """Forwards checkpoints to the ``riffchunk`` logger."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self.log = log or logger

    def container_recognized(self, kind: ContainerKind, path: Path | None) -> None:
        self.log.info("%s file: %s", kind.display_name, path if path is not None else "<stream>")

    def chunk_processed(self, chunk: Chunk) -> None:
        self.log.info(
            "chunk %r offset=%d size=%d",
            chunk.tag.as_tag(),
            chunk.offset,
            chunk.size.as_int(),
        )

    def operation_complete(self, operation: str, chunk_count: int) -> None:
        self.log.info("%s done, %d chunks", operation, chunk_count)

    def stream_error(self, message: str) -> None:
        self.log.error("stream errored: %s", message)


class ChunkRecorder(NullReporter):
    """Collects a summary of every processed chunk."""

    def __init__(self) -> None:
        self.kind: ContainerKind | None = None
        self.chunks: list[ChunkSummary] = []
        self.errors: list[str] = []

    def container_recognized(self, kind: ContainerKind, path: Path | None) -> None:
        self.kind = kind
        self.chunks.clear()

    def chunk_processed(self, chunk: Chunk) -> None:
        self.chunks.append(ChunkSummary.from_chunk(chunk))

    def stream_error(self, message: str) -> None:
        self.errors.append(message)
