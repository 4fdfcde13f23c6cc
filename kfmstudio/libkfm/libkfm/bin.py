"""libkfm.bin

Fixed-width primitives and u32-length-prefixed strings.

The byte order is chosen once per file (by the header flag) and then passed
explicitly to every multi-byte read/write, so the same record code serves both
little- and big-endian files.
"""

from __future__ import annotations

import struct
from enum import Enum

from .errors import EncodingError, FormatError


class ByteOrder(Enum):
    LITTLE = "<"
    BIG = ">"

    @classmethod
    def from_flag(cls, is_little_endian: bool) -> "ByteOrder":
        return cls.LITTLE if is_little_endian else cls.BIG


class Bin:
    """Cursor over a fully buffered file."""

    __slots__ = ("data", "ofs")

    def __init__(self, data: bytes):
        self.data = data
        self.ofs = 0

    def remaining(self) -> int:
        return len(self.data) - self.ofs

    def read(self, n: int) -> bytes:
        b = self.data[self.ofs:self.ofs + n]
        if len(b) != n:
            raise FormatError(f"unexpected EOF at {self.ofs}, need {n}")
        self.ofs += n
        return b

    def _unpack(self, fmt: str, size: int, order: ByteOrder):
        return struct.unpack(order.value + fmt, self.read(size))[0]

    def u8(self) -> int:
        return self.read(1)[0]

    def u32(self, order: ByteOrder) -> int:
        return self._unpack("I", 4, order)

    def i32(self, order: ByteOrder) -> int:
        return self._unpack("i", 4, order)

    def f32(self, order: ByteOrder) -> float:
        return self._unpack("f", 4, order)

    def string(self, order: ByteOrder) -> str:
        n = self.u32(order)
        raw = self.read(n)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FormatError(f"string is not valid utf-8: {e.reason}") from e

    def count(self, order: ByteOrder, item_size: int) -> int:
        """Read a u32 element count and make sure the input can hold it.

        ``item_size`` is the smallest encoded size of one element.
        """
        start = self.ofs
        n = self.u32(order)
        if n * item_size > self.remaining():
            raise FormatError(
                f"count {n} at {start} exceeds input ({self.remaining()} bytes left)"
            )
        return n


class BinOut:
    __slots__ = ("buf",)

    def __init__(self):
        self.buf = bytearray()

    def tell(self) -> int:
        return len(self.buf)

    def getvalue(self) -> bytes:
        return bytes(self.buf)

    def write(self, b: bytes) -> None:
        self.buf.extend(b)

    def _pack(self, fmt: str, value, order: ByteOrder) -> None:
        try:
            self.buf.extend(struct.pack(order.value + fmt, value))
        except struct.error as e:
            raise EncodingError(f"cannot pack {value!r} as '{fmt}': {e}") from e

    def u8(self, value: int) -> None:
        self._pack("B", value, ByteOrder.LITTLE)

    def u32(self, value: int, order: ByteOrder) -> None:
        self._pack("I", value, order)

    def i32(self, value: int, order: ByteOrder) -> None:
        self._pack("i", value, order)

    def f32(self, value: float, order: ByteOrder) -> None:
        self._pack("f", value, order)

    def string(self, value: str, order: ByteOrder) -> None:
        if not value.isascii():
            raise EncodingError(f"`{value}` is not ascii")
        enc = value.encode("ascii")
        self.u32(len(enc), order)
        self.buf.extend(enc)
