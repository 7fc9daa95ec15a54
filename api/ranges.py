from models import ByteRange

_UNIT = "bytes="


class RangeError(Exception):
    pass


class MalformedRange(RangeError):
    """The header does not have the single `bytes=<start>-[<end>]` form we serve."""

    def __init__(self, header: str, reason: str):
        super().__init__(f"Malformed Range header {header!r}: {reason}")
        self.header = header
        self.reason = reason


class RangeNotSatisfiable(RangeError):
    def __init__(self, start: int, size: int):
        super().__init__(f"Requested range not satisfiable: start={start} size={size}")
        self.start = start
        self.size = size


def _parse_offset(header: str, text: str, name: str) -> int:
    text = text.strip()
    # int() would also accept "+5", "1_000" and unicode digits
    if not text.isascii() or not text.isdigit():
        raise MalformedRange(header, f"{name} is not a decimal integer")
    return int(text)


def parse_range(header: str | None, size: int) -> ByteRange | None:
    """
    Resolve a Range header against a blob of `size` bytes.

    Returns None when no range was asked for. Raises MalformedRange for values
    we do not serve (other units, suffix ranges, multiple ranges, end < start)
    and RangeNotSatisfiable when start lies at or beyond the end of the blob.
    An end past the last byte is clamped to it.
    """
    if header is None or not header.strip():
        return None

    value = header.strip()
    if not value.lower().startswith(_UNIT):
        raise MalformedRange(header, "unsupported unit")

    spec = value[len(_UNIT):]
    if "," in spec:
        raise MalformedRange(header, "multiple ranges are not supported")
    if "-" not in spec:
        raise MalformedRange(header, "missing '-'")

    start_text, end_text = spec.split("-", 1)
    start = _parse_offset(header, start_text, "start")
    if start >= size:
        raise RangeNotSatisfiable(start, size)

    if end_text.strip():
        end = _parse_offset(header, end_text, "end")
        if end < start:
            raise MalformedRange(header, "end before start")
        end = min(end, size - 1)
    else:
        end = size - 1

    return ByteRange(start=start, end=end, size=size)
