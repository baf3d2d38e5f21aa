#!/usr/bin/env python3
"""Write a stereo sine sweep with JSON metadata, then append to it in place.

This script demonstrates the complete workflow for creating 32-bit float
WAVE files with riffchunk: writing frames, storing an application chunk
through ChunkHooks, and reopening the file to extend it.
"""

from pathlib import Path

import numpy as np

from riffchunk import ChunkHooks, ChunkRecorder, JsonChunk, PreservingHooks, SampleFile
from riffchunk.types import JSON_ID


def write_stereo_sweep(
    output_path: Path,
    sample_rate: int = 48000,
    seconds: float = 2.0,
    start_hz: float = 110.0,
    end_hz: float = 1760.0,
) -> None:
    """Write a logarithmic sweep, left channel rising and right channel falling.

    Args:
        output_path: Output file path for the WAV file.
        sample_rate: Sample rate in Hz.
        seconds: Length of the sweep.
        start_hz: Sweep start frequency.
        end_hz: Sweep end frequency.
    """
    print("Generating stereo sweep...")
    frames = int(sample_rate * seconds)
    t = np.arange(frames) / sample_rate

    # exponential sweep phase
    k = np.log(end_hz / start_hz) / seconds
    rising = np.sin(2 * np.pi * start_hz * (np.exp(k * t) - 1) / k)
    falling = rising[::-1]
    sweep = (0.5 * np.stack([rising, falling], axis=1)).astype(np.float32)

    metadata = JsonChunk(
        {
            "generator": "write_stereo_sweep",
            "start_hz": start_hz,
            "end_hz": end_hz,
        }
    )

    # 1. Create the file with the metadata chunk ahead of the samples
    with SampleFile.open(output_path, "w", hooks=ChunkHooks(custom_chunks=[metadata])) as sound:
        sound.channel_count = 2
        sound.sample_rate = sample_rate
        sound.write_frames(sweep)

    # 2. Reopen, keep the metadata, and append a second of silence
    with SampleFile.open(output_path, "r+", hooks=PreservingHooks(chunk_types={JSON_ID: JsonChunk})) as sound:
        sound.seek(sound.length())
        sound.write_frames(np.zeros((sample_rate, 2), dtype=np.float32))

    # 3. Read it back and list the chunks
    recorder = ChunkRecorder()
    with SampleFile.open(output_path, reporter=recorder) as sound:
        print(f"Saved {output_path}")
        print(f"  Frames: {sound.length()}")
        print(f"  Duration: {sound.duration:.2f} s")
        for chunk in recorder.chunks:
            print(f"  Chunk {chunk.tag!r}: offset={chunk.offset}, size={chunk.size}")


if __name__ == "__main__":
    output = Path(__file__).parent / "stereo_sweep.wav"
    write_stereo_sweep(output)
