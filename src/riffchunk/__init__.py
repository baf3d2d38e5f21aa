"""riffchunk - chunk-scanning RIFF/WAVE codec.

This package reads and writes WAVE files of interleaved 32-bit float
samples through a generic chunk scanner, and addresses the samples by frame
index instead of byte offset.

File Layout
-----------
    +----------------------------------------+
    | RIFF header ("WAVE")                   |
    +----------------------------------------+
    | fmt  chunk (float32, channels, rate)   |
    +----------------------------------------+
    | custom chunks (from ChunkHooks)        |
    +----------------------------------------+
    | data chunk (interleaved float32)       |
    +----------------------------------------+

Example Usage
-------------
>>> import numpy as np
>>> from riffchunk import SampleFile
>>> with SampleFile.open("stereo.wav", "w") as sound:
...     sound.channel_count = 2
...     sound.write_frames(np.zeros((4, 2), dtype=np.float32))
>>> with SampleFile.open("stereo.wav") as sound:
...     print(sound.length(), sound.channel_count, sound.sample_rate)
4 2 44100
"""

from riffchunk.bytefile import ByteFile
from riffchunk.chunks import (
    CHUNK_TYPES,
    Chunk,
    FormatChunk,
    HeaderChunk,
    JsonChunk,
    PayloadChunk,
    RawChunk,
    promote,
)
from riffchunk.errors import (
    FieldOverflowError,
    MalformedContainer,
    RiffError,
    StreamWriteError,
    UnexpectedEndOfFile,
    UnrecognizedFileType,
    UnsupportedBitDepth,
    UnsupportedContainerKind,
    UnsupportedEncoding,
)
from riffchunk.fields import ByteField
from riffchunk.hooks import ChunkHooks, PreservingHooks
from riffchunk.reporting import ChunkRecorder, ChunkSummary, LoggingReporter, NullReporter, Reporter
from riffchunk.samplefile import SampleFile
from riffchunk.types import ContainerKind, SoundInfo

__all__ = [
    # Byte access
    "ByteField",
    "ByteFile",
    # Chunks
    "Chunk",
    "HeaderChunk",
    "FormatChunk",
    "PayloadChunk",
    "RawChunk",
    "JsonChunk",
    "CHUNK_TYPES",
    "promote",
    # Sample access
    "SampleFile",
    "SoundInfo",
    "ContainerKind",
    # Extension points
    "ChunkHooks",
    "PreservingHooks",
    # Diagnostics
    "Reporter",
    "LoggingReporter",
    "NullReporter",
    "ChunkRecorder",
    "ChunkSummary",
    # Errors
    "RiffError",
    "UnrecognizedFileType",
    "UnsupportedEncoding",
    "UnsupportedBitDepth",
    "UnsupportedContainerKind",
    "MalformedContainer",
    "UnexpectedEndOfFile",
    "StreamWriteError",
    "FieldOverflowError",
]
