"""
Primitive binary codec for StructFuzz.

Scalars are packed with Scapy Field objects (one per format/endianness pair,
built once and cached), the same machinery Scapy uses to build packet bytes.
Sinks are best-effort by default: a failing destination is logged and counted,
not raised, unless the sink is strict.
"""

# Standard library imports
from __future__ import annotations
import logging
import math
from enum import Enum
from functools import lru_cache
from typing import Any, Optional, Tuple, Union

# Third-party imports
from scapy.fields import Field
from scapy.utils import hexdump, linehexdump

# Local imports
from .errors import SerializationError

logger = logging.getLogger(__name__)

# Constants
FLOAT32_MAX = 3.4028234663852886e38

# struct format char -> (byte width, signed)
INT_FORMATS = {
    "B": (1, False),
    "b": (1, True),
    "H": (2, False),
    "h": (2, True),
    "I": (4, False),
    "i": (4, True),
    "Q": (8, False),
    "q": (8, True),
}


class Endianness(Enum):
    """Byte order applied to every multi-byte scalar in one serialize call"""
    BIG = "big"
    LITTLE = "little"

    @property
    def prefix(self) -> str:
        return ">" if self is Endianness.BIG else "<"


class ByteSink:
    """
    Append-only byte destination.

    Wraps a bytearray (the default) or any object with a write() method.
    """

    def __init__(self, destination: Optional[Any] = None, strict: bool = False):
        self.destination = bytearray() if destination is None else destination
        self.strict = strict
        self.failed_writes = 0
        self.bytes_written = 0

    def __repr__(self) -> str:
        return (f"ByteSink(bytes_written={self.bytes_written}, "
                f"failed_writes={self.failed_writes}, strict={self.strict})")

    def write(self, data: bytes) -> None:
        if not data:
            return
        try:
            if isinstance(self.destination, bytearray):
                self.destination.extend(data)
                written = len(data)
            else:
                written = self.destination.write(data)
                if written is None:
                    written = len(data)
        except OSError as e:
            self._record_failure(len(data), e)
            return
        if written < len(data):
            self._record_failure(len(data) - written, None)
        self.bytes_written += written

    def _record_failure(self, lost: int, error: Optional[Exception]) -> None:
        self.failed_writes += 1
        if self.strict:
            raise SerializationError(
                f"Sink accepted {lost} byte(s) fewer than requested",
                context={"lost": lost, "error": str(error) if error else None},
            ) from error
        logger.warning(f"Best-effort write dropped {lost} byte(s): {error or 'short write'}")

    def getvalue(self) -> bytes:
        """Bytes collected so far (in-memory destinations only)."""
        if isinstance(self.destination, bytearray):
            return bytes(self.destination)
        if hasattr(self.destination, "getvalue"):
            return self.destination.getvalue()
        raise TypeError(f"{type(self.destination).__name__} does not expose its contents")


def as_sink(destination: Union[ByteSink, bytearray, Any, None], strict: bool = False) -> ByteSink:
    """Wrap a bytearray or stream in a ByteSink (ByteSinks pass through)."""
    if isinstance(destination, ByteSink):
        return destination
    return ByteSink(destination, strict=strict)


@lru_cache(maxsize=None)
def _scalar_field(fmt: str, endianness: Endianness) -> Field:
    return Field(f"scalar_{fmt}", 0, endianness.prefix + fmt)


def scalar_size(fmt: str) -> int:
    return _scalar_field(fmt, Endianness.BIG).sz


def wrap_int(value: int, bits: int, signed: bool) -> int:
    """Truncate an integer to `bits` bits, two's complement when signed."""
    value = int(value) & ((1 << bits) - 1)
    if signed and value >> (bits - 1):
        value -= 1 << bits
    return value


def _coerce(fmt: str, value: Any) -> Any:
    if fmt in INT_FORMATS:
        width, signed = INT_FORMATS[fmt]
        return wrap_int(value, width * 8, signed)
    value = float(value)
    # f cannot pack finite values beyond float32 range; the wire would carry inf
    if fmt == "f" and math.isfinite(value) and abs(value) > FLOAT32_MAX:
        value = math.copysign(math.inf, value)
    return value


def encode_scalar(fmt: str, value: Any, sink: ByteSink, endianness: Endianness) -> None:
    field = _scalar_field(fmt, endianness)
    sink.write(field.addfield(None, b"", _coerce(fmt, value)))


def decode_scalar(fmt: str, data: bytes, endianness: Endianness) -> Tuple[bytes, Any]:
    """Decode one scalar from the front of data, returning (remaining, value)."""
    field = _scalar_field(fmt, endianness)
    if len(data) < field.sz:
        raise SerializationError(
            f"Need {field.sz} byte(s) to decode '{fmt}', got {len(data)}",
            context={"format": fmt, "available": len(data)},
        )
    return field.getfield(None, data)


def encode_bytes(data: Union[bytes, bytearray], sink: ByteSink) -> None:
    sink.write(bytes(data))


def text_size(text: str) -> int:
    return len(text.encode("utf-8", errors="surrogatepass"))


def encode_text(text: str, sink: ByteSink) -> None:
    sink.write(text.encode("utf-8", errors="surrogatepass"))


def dump_hex(data: bytes) -> str:
    """Multi-line hexdump (Scapy format) for reports."""
    return hexdump(data, dump=True) if data else ""


def dump_hex_line(data: bytes) -> str:
    """Single-line hexdump for debug logs."""
    return linehexdump(data, onlyhex=1, dump=True) if data else ""
