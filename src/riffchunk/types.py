"""Constants and value types shared by the codec."""

from dataclasses import dataclass
from enum import IntEnum

# FourCC identifiers
RIFF_ID = b"RIFF"
WAVE_ID = b"WAVE"
FORM_ID = b"FORM"
AIFF_ID = b"AIFF"
FMT_ID = b"fmt "
DATA_ID = b"data"
JSON_ID = b"JSON"

# Audio format codes
WAVE_FORMAT_PCM = 1
WAVE_FORMAT_IEEE_FLOAT = 3

CHUNK_HEADER_SIZE = 8
"""Tag plus size field."""

FMT_PAYLOAD_SIZE = 16
BYTES_PER_SAMPLE = 4
BITS_PER_SAMPLE = BYTES_PER_SAMPLE * 8

DEFAULT_CHANNELS = 1
DEFAULT_SAMPLE_RATE = 44100


class ContainerKind(IntEnum):
    """Outer container recognized from the header tag and format."""

    UNKNOWN = 0
    """Nothing has been read or assigned yet."""

    WAVE = 1
    """RIFF/WAVE, fully supported."""

    AIFF = 2
    """FORM/AIFF, recognized but not supported."""

    @property
    def display_name(self) -> str:
        """Human-readable name for this kind."""
        names = {
            self.UNKNOWN: "Unknown",
            self.WAVE: "Wave",
            self.AIFF: "AIFF",
        }
        return names.get(self, "Unknown")


@dataclass
class SoundInfo:
    """Stream shape published by the format chunk."""

    kind: ContainerKind = ContainerKind.UNKNOWN
    channels: int = DEFAULT_CHANNELS
    sample_rate: int = DEFAULT_SAMPLE_RATE
