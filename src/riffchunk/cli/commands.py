import json
import sys
from pathlib import Path
from typing import Annotated

import numpy as np
from cyclopts import App, Parameter
from rich.console import Console
from rich.table import Table

from riffchunk.chunks import JsonChunk
from riffchunk.cli.validators import (
    validate_json_object,
    validate_positive_float,
    validate_positive_integer,
)
from riffchunk.errors import RiffError
from riffchunk.hooks import ChunkHooks, PreservingHooks
from riffchunk.reporting import ChunkRecorder, ChunkSummary
from riffchunk.samplefile import SampleFile
from riffchunk.types import DEFAULT_CHANNELS, DEFAULT_SAMPLE_RATE, JSON_ID

app = App(name="riffchunk", help="Inspect and create 32-bit float WAVE files")
console = Console()


def print_error(message: str) -> None:
    """Print an error message in red."""
    console.print(message, style="bold red")


def print_success(message: str) -> None:
    """Print a success message in green."""
    console.print(message, style="bold green")


def scan_file(file: Path) -> tuple[SampleFile, ChunkRecorder, PreservingHooks]:
    """Read a file's container, recording every chunk and keeping JSON metadata."""
    recorder = ChunkRecorder()
    hooks = PreservingHooks(chunk_types={JSON_ID: JsonChunk})
    sound = SampleFile.open(file, hooks=hooks, reporter=recorder)
    return sound, recorder, hooks


def chunk_table(chunks: list[ChunkSummary]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Tag", justify="left")
    table.add_column("Offset", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Type", justify="left")

    for chunk in chunks:
        table.add_row(repr(chunk.tag), str(chunk.offset), str(chunk.size), chunk.kind)

    return table


@app.command
def info(file: Path) -> int:
    """
    Display information about a WAVE file.

    Parameters
    ----------
    file: Path
        The path to the .wav file
    """
    try:
        sound, recorder, hooks = scan_file(file)
    except RiffError as e:
        print_error(f"Error: {e}")
        return 1

    with sound:
        console.print(f"File: {file}")
        console.print(f"  Container: {sound.container_kind.display_name}")
        console.print(f"  Channels: {sound.channel_count}")
        console.print(f"  Sample rate: {sound.sample_rate} Hz")
        console.print(f"  Frames: {sound.length()}")
        console.print(f"  Duration: {sound.duration:.3f} s")
        console.print(f"  Payload offset: {sound.payload_offset}")

    metadata = [chunk for chunk in hooks.preserved if isinstance(chunk, JsonChunk)]
    for chunk in metadata:
        console.print("  Metadata:")
        for key, value in sorted(chunk.data.items()):
            console.print(f"    {key}: {value}", markup=False)

    console.print(chunk_table(recorder.chunks))

    return 0


@app.command
def create(
    output: Path,
    channels: Annotated[int, Parameter(validator=validate_positive_integer)] = DEFAULT_CHANNELS,
    sample_rate: Annotated[int, Parameter(validator=validate_positive_integer)] = DEFAULT_SAMPLE_RATE,
    frames: Annotated[int, Parameter(validator=validate_positive_integer)] = DEFAULT_SAMPLE_RATE,
    tone: Annotated[float | None, Parameter(validator=validate_positive_float)] = None,
    metadata: Annotated[str | None, Parameter(validator=validate_json_object)] = None,
) -> int:
    """
    Create a 32-bit float WAVE file filled with silence or a sine tone.

    Parameters
    ----------
    output: Path
        The output destination for the .wav file
    channels: int
        The number of interleaved channels
    sample_rate: int
        The sample rate in Hz
    frames: int
        The number of frames to write
    tone: float | None
        Frequency in Hz of a sine tone written to every channel (silence if omitted)
    metadata: str | None
        A JSON object stored in a JSON chunk, e.g. '{"name": "test"}'
    """
    if tone is None:
        samples = np.zeros(frames, dtype=np.float32)
    else:
        t = np.arange(frames) / sample_rate
        samples = (0.5 * np.sin(2 * np.pi * tone * t)).astype(np.float32)

    custom_chunks = [JsonChunk(json.loads(metadata))] if metadata else []

    try:
        with SampleFile.open(output, "w", hooks=ChunkHooks(custom_chunks=custom_chunks)) as sound:
            sound.channel_count = channels
            sound.sample_rate = sample_rate
            sound.write_frames(np.repeat(samples[:, np.newaxis], channels, axis=1))
    except RiffError as e:
        print_error(f"Error writing output: {e}")
        return 1

    print_success(f"Created {output}")
    console.print(f"  Channels: {channels}")
    console.print(f"  Sample rate: {sample_rate} Hz")
    console.print(f"  Frames: {frames}")
    if tone is not None:
        console.print(f"  Tone: {tone} Hz")

    return 0


@app.command
def chunks(
    file: Path,
    output_json: Annotated[bool, Parameter(name=["--json"])] = False,
) -> int:
    """
    List the chunks of a WAVE file.

    Parameters
    ----------
    file: Path
        The path to the .wav file
    output_json: bool
        Output the chunk list as JSON (default: False)
    """
    try:
        sound, recorder, _ = scan_file(file)
    except RiffError as e:
        if output_json:
            result = {"file": str(file), "error": e.message}
            console.print(json.dumps(result, indent=2), markup=False, highlight=False, soft_wrap=True)
        else:
            print_error(f"Error: {e}")
        return 1
    sound.close()

    if output_json:
        rows = [chunk.to_dict() for chunk in recorder.chunks]
        console.print(json.dumps(rows, indent=2), markup=False, highlight=False, soft_wrap=True)
    else:
        console.print(chunk_table(recorder.chunks))

    return 0


if __name__ == "__main__":
    sys.exit(app())
