"""Error kinds raised by the RIFF/WAVE codec.

Every error is fatal to the current read or write operation. Each kind
carries the structured values that caused it so callers can match on the
class and inspect attributes instead of parsing message text.
"""


class RiffError(Exception):
    """Error reading or writing RIFF files."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UnrecognizedFileType(RiffError):
    """The container tag/format pair matches no known container."""

    def __init__(self, tag: bytes, format: bytes) -> None:
        self.tag = tag
        self.format = format
        super().__init__(f"Unrecognized file type: tag={tag!r}, format={format!r}")


class UnsupportedEncoding(RiffError):
    """The format chunk declares an encoding other than IEEE float."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Unsupported audio encoding {actual}, only {expected} (IEEE float) is supported"
        )


class UnsupportedBitDepth(RiffError):
    """The format chunk declares a sample size other than 32 bits."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Unsupported sample size of {actual} bits, only {expected}-bit float is supported"
        )


class UnsupportedContainerKind(RiffError):
    """The container was recognized but cannot be read or written."""

    def __init__(self, kind: object) -> None:
        self.kind = kind
        super().__init__(f"Unsupported container kind: {kind}")


class MalformedContainer(RiffError):
    """A chunk's declared extent does not fit inside its parent."""

    def __init__(
        self,
        message: str,
        *,
        tag: bytes | None = None,
        offset: int | None = None,
        end: int | None = None,
        bound: int | None = None,
    ) -> None:
        self.tag = tag
        self.offset = offset
        self.end = end
        self.bound = bound
        super().__init__(message)


class UnexpectedEndOfFile(RiffError):
    """The stream ended before a fixed-width field could be read."""

    def __init__(self, position: int, wanted: int, got: int) -> None:
        self.position = position
        self.wanted = wanted
        self.got = got
        super().__init__(
            f"Unexpected end of file at byte {position}: wanted {wanted} bytes, got {got}"
        )


class StreamWriteError(RiffError):
    """The backing stream failed to accept written bytes."""

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        super().__init__(message)


class FieldOverflowError(RiffError, ValueError):
    """A value does not fit in a fixed-width field."""

    def __init__(self, width: int, value: object) -> None:
        self.width = width
        self.value = value
        super().__init__(f"Value {value!r} does not fit in a {width}-byte field")
