from __future__ import annotations

import os
import struct
from typing import BinaryIO, Iterator

from .digest import resolve
from .errors import DecodeError, UnknownAlgorithmError
from .models import HEADER_SIZE, TRAILER_SENTINEL, FileRecord, Trailer

_U64 = struct.Struct(">Q")
_MAX_VARINT_BYTES = 10
_READ_CHUNK = 1 << 16
MAX_PATH_LENGTH = 4096


def read_header(stream: BinaryIO) -> str:
    """Read the NUL padded algorithm name and check it is registered."""
    raw = _read_exact(stream, HEADER_SIZE, "header").strip(b"\x00")
    try:
        name = raw.decode("ascii")
    except UnicodeDecodeError:
        raise UnknownAlgorithmError(raw.decode("ascii", "replace")) from None
    if not name:
        raise UnknownAlgorithmError(name)
    resolve(name)
    return name


def iter_records(stream: BinaryIO, checksum_size: int) -> Iterator[FileRecord]:
    """Yield file records until the trailer sentinel has been consumed.

    The trailer itself is left in the stream for ``read_trailer``.
    """
    while True:
        length = _read_uvarint(stream)
        if length == TRAILER_SENTINEL:
            return
        if length > MAX_PATH_LENGTH:
            raise DecodeError(
                f"record path length {length} exceeds {MAX_PATH_LENGTH} bytes"
            )
        raw_path = _read_exact(stream, length, "record path")
        try:
            path = raw_path.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"record path is not valid utf-8: {exc}") from exc
        _check_relative(path)
        (size,) = _U64.unpack(_read_exact(stream, _U64.size, f"{path}: size"))
        checksum = _read_exact(stream, checksum_size, f"{path}: checksum")
        yield FileRecord(path=path, size=size, checksum=checksum)


def read_trailer(stream: BinaryIO, checksum_size: int) -> Trailer:
    (count,) = _U64.unpack(_read_exact(stream, _U64.size, "trailer count"))
    (size,) = _U64.unpack(_read_exact(stream, _U64.size, "trailer size"))
    checksum = _read_exact(stream, checksum_size, "trailer checksum")
    if stream.read(1):
        raise DecodeError("unexpected data after trailer")
    return Trailer(count=count, size=size, checksum=checksum)


def _read_uvarint(stream: BinaryIO) -> int:
    val = 0
    for index in range(_MAX_VARINT_BYTES):
        chunk = stream.read(1)
        if not chunk:
            if index == 0:
                raise DecodeError("unexpected end of manifest: missing trailer")
            raise DecodeError("truncated uvarint")
        b = chunk[0]
        if b < 0x80:
            if index == _MAX_VARINT_BYTES - 1 and b > 1:
                raise DecodeError("uvarint overflows 64 bits")
            return val | (b << (7 * index))
        val |= (b & 0x7F) << (7 * index)
    raise DecodeError("uvarint overflows 64 bits")


def _check_relative(path: str) -> None:
    rel = os.path.normpath(path.lstrip("/\\"))
    if rel == os.pardir or rel.startswith(os.pardir + os.sep):
        raise DecodeError(f"{path}: record path escapes the tree")


def _read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    if size <= 0:
        return b""
    data = bytearray()
    while len(data) < size:
        chunk = stream.read(min(size - len(data), _READ_CHUNK))
        if not chunk:
            raise DecodeError(
                f"truncated {what}: expected {size} bytes, got {len(data)}"
            )
        data.extend(chunk)
    return bytes(data)
