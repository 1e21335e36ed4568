import hashlib
import zlib
from typing import Protocol, Union

HashInput = Union[bytes, str]


def _to_bytes(value: HashInput) -> bytes:
    if isinstance(value, bytes):
        return value
    return str(value).encode("utf-8")


class Hasher(Protocol):
    """Maps an input to an unsigned integer position on the ring."""

    bits: int

    @property
    def max_position(self) -> int:
        ...

    def hash(self, value: HashInput) -> int:
        ...


class Crc32Hasher:
    """Fast, non-cryptographic 32-bit positions using CRC-32."""

    name = "crc32"
    bits = 32

    @property
    def max_position(self) -> int:
        return (1 << self.bits) - 1

    def hash(self, value: HashInput) -> int:
        return zlib.crc32(_to_bytes(value)) & 0xFFFFFFFF

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class Md5Hasher:
    """MD5 digest truncated to the first 32 bits."""

    name = "md5"
    bits = 32

    @property
    def max_position(self) -> int:
        return (1 << self.bits) - 1

    def hash(self, value: HashInput) -> int:
        return int(hashlib.md5(_to_bytes(value)).hexdigest()[:8], 16)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def create_hasher(name: str) -> Hasher:
    name = name.lower()
    if name == "crc32":
        return Crc32Hasher()
    if name == "md5":
        return Md5Hasher()
    raise ValueError(f"Unknown hasher '{name}'")
