from __future__ import annotations

import hashlib
import zlib
from typing import Any, Callable, Dict, List

from .errors import UnknownAlgorithmError
from .models import HEADER_SIZE

HasherFactory = Callable[[], Any]

_REGISTRY: Dict[str, HasherFactory] = {}


class _ZlibChecksum:
    """hashlib-style wrapper over zlib's running 32-bit checksums."""

    digest_size = 4

    def __init__(self, func: Callable[[bytes, int], int], start: int) -> None:
        self._func = func
        self._value = start

    def update(self, data: bytes) -> None:
        self._value = self._func(data, self._value)

    def digest(self) -> bytes:
        return (self._value & 0xFFFFFFFF).to_bytes(4, "big")

    def copy(self) -> "_ZlibChecksum":
        return _ZlibChecksum(self._func, self._value)


def register(name: str, factory: HasherFactory) -> None:
    key = _normalize(name)
    if not key:
        raise ValueError("algorithm name must not be empty")
    if len(key.encode("ascii")) > HEADER_SIZE:
        raise ValueError(f"algorithm name longer than {HEADER_SIZE} bytes: {name}")
    _REGISTRY[key] = factory


def resolve(name: str) -> HasherFactory:
    factory = _REGISTRY.get(_normalize(name))
    if factory is None:
        raise UnknownAlgorithmError(name)
    return factory


def available_algorithms() -> List[str]:
    return sorted(_REGISTRY)


def new_digest(name: str) -> "Digest":
    return Digest(name)


class Digest:
    """Two hash states fed by the same bytes.

    The local state covers the bytes written since the last ``reset`` and
    is used for one file at a time. The global state is never reset and
    seals every byte written during the object's lifetime, in order.
    """

    def __init__(self, name: str) -> None:
        self._factory = resolve(name)
        self.name = _normalize(name)
        self._local = self._factory()
        self._global = self._factory()
        self.size = int(self._global.digest_size)

    @property
    def digest_size(self) -> int:
        return self.size

    def write(self, data: bytes) -> int:
        if not data:
            return 0
        self._local.update(data)
        self._global.update(data)
        return len(data)

    def local_digest(self) -> bytes:
        return self._local.copy().digest()

    def global_digest(self) -> bytes:
        return self._global.copy().digest()

    def reset(self) -> None:
        self._local = self._factory()


def _normalize(name: str) -> str:
    return str(name or "").strip().strip("\x00").lower()


def _hashlib_factory(name: str) -> HasherFactory:
    return lambda: hashlib.new(name)


for _name in sorted(hashlib.algorithms_guaranteed):
    if _name.startswith("shake_"):
        continue
    register(_name, _hashlib_factory(_name))

register("crc32", lambda: _ZlibChecksum(zlib.crc32, 0))
register("adler32", lambda: _ZlibChecksum(zlib.adler32, 1))
