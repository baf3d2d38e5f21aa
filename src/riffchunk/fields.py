"""Fixed-width byte fields.

A ByteField is the smallest unit the codec reads or writes: N bytes that can
be viewed as an unsigned integer (packed with ``struct``) or as a raw ASCII
tag such as a FourCC.
"""

import struct
from typing import Literal

from riffchunk.errors import FieldOverflowError

ByteOrder = Literal["little", "big"]

_INT_FORMATS = {1: "B", 2: "H", 4: "I", 8: "Q"}


class ByteField:
    """N bytes with integer and tag views."""

    __slots__ = ("width", "byteorder", "_raw")

    def __init__(self, width: int, value: int | bytes = 0, byteorder: ByteOrder = "little") -> None:
        if width <= 0:
            raise ValueError(f"ByteField width must be positive, got {width}")
        self.width = width
        self.byteorder = byteorder
        self._raw = b"\x00" * width
        if isinstance(value, bytes):
            self.set_tag(value)
        elif value:
            self.set_int(value)

    @classmethod
    def tag(cls, value: bytes | str) -> "ByteField":
        """Build a 4-byte tag field."""
        field = cls(4)
        field.set_tag(value)
        return field

    def _format(self) -> str:
        try:
            code = _INT_FORMATS[self.width]
        except KeyError:
            raise TypeError(f"A {self.width}-byte field has no integer view") from None
        return ("<" if self.byteorder == "little" else ">") + code

    @property
    def raw(self) -> bytes:
        return self._raw

    @raw.setter
    def raw(self, data: bytes) -> None:
        if len(data) != self.width:
            raise ValueError(f"ByteField expects exactly {self.width} bytes, got {len(data)}")
        self._raw = bytes(data)

    def as_int(self) -> int:
        return struct.unpack(self._format(), self._raw)[0]

    def set_int(self, value: int) -> None:
        """Store an unsigned integer; values wider than the field are rejected."""
        if value < 0 or value >= 1 << (8 * self.width):
            raise FieldOverflowError(self.width, value)
        self._raw = struct.pack(self._format(), value)

    def as_tag(self) -> str:
        return self._raw.decode("latin-1")

    def set_tag(self, value: bytes | str) -> None:
        if isinstance(value, str):
            value = value.encode("ascii")
        if len(value) != self.width:
            raise FieldOverflowError(self.width, value)
        self._raw = bytes(value)

    def matches(self, tag: bytes | str) -> bool:
        """Compare against an ASCII tag."""
        if isinstance(tag, str):
            tag = tag.encode("ascii")
        return self._raw == tag

    def is_zero(self) -> bool:
        return not any(self._raw)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ByteField):
            return self._raw == other._raw
        if isinstance(other, (bytes, str)):
            return self.matches(other)
        if isinstance(other, int):
            return self.as_int() == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._raw)

    def __len__(self) -> int:
        return self.width

    def __repr__(self) -> str:
        return f"<ByteField<{self.width}>({self._raw!r})>"
