from __future__ import annotations

import hashlib
import io
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from _manifest_helpers import build_manifest, encode_uvarint, header, record, trailer
from treeseal.decoder import MAX_PATH_LENGTH, iter_records, read_header, read_trailer
from treeseal.errors import DecodeError, UnknownAlgorithmError
from treeseal.models import FileRecord

SHA256_SIZE = 32


def _digest(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def test_header_is_trimmed_and_resolved() -> None:
    assert read_header(io.BytesIO(header("sha256"))) == "sha256"
    assert read_header(io.BytesIO(b"\x00\x00MD5" + b"\x00" * 11)) == "MD5"


def test_header_with_unknown_algorithm() -> None:
    with pytest.raises(UnknownAlgorithmError):
        read_header(io.BytesIO(header("whirlpool-x")))
    with pytest.raises(UnknownAlgorithmError):
        read_header(io.BytesIO(b"\x00" * 16))
    with pytest.raises(UnknownAlgorithmError):
        read_header(io.BytesIO(b"\xff\xfe" + b"\x00" * 14))


def test_short_header_is_decode_error() -> None:
    with pytest.raises(DecodeError):
        read_header(io.BytesIO(b"sha2"))


def test_records_then_trailer() -> None:
    files = [("a", b"x"), ("dir/b", b"yy")]
    stream = io.BytesIO(build_manifest(files))
    read_header(stream)

    records = list(iter_records(stream, SHA256_SIZE))
    assert records == [
        FileRecord("a", 1, _digest(b"x")),
        FileRecord("dir/b", 2, _digest(b"yy")),
    ]

    tail = read_trailer(stream, SHA256_SIZE)
    assert tail.count == 2
    assert tail.size == 3
    assert tail.checksum == _digest(b"xyy")


def test_long_path_uses_multi_byte_length() -> None:
    name = "d/" + "n" * 300
    assert len(encode_uvarint(len(name))) == 2
    stream = io.BytesIO(record(name, 7, _digest(b"")) + trailer(1, 7, _digest(b"")))
    records = list(iter_records(stream, SHA256_SIZE))
    assert records[0].path == name
    assert records[0].size == 7


def test_unicode_path() -> None:
    stream = io.BytesIO(record("café/ñ.txt", 0, _digest(b"")) + b"\x00")
    assert [item.path for item in iter_records(stream, SHA256_SIZE)] == ["café/ñ.txt"]


def test_records_are_lazy() -> None:
    stream = io.BytesIO(record("ok", 1, _digest(b"x")) + b"\x05ab")
    records = iter_records(stream, SHA256_SIZE)
    assert next(records).path == "ok"
    with pytest.raises(DecodeError):
        next(records)


@pytest.mark.parametrize(
    "raw",
    [
        record("file", 3, _digest(b"abc"))[:-5],
        encode_uvarint(4) + b"fi",
        encode_uvarint(4) + b"file" + b"\x00\x00\x01",
        b"\x80",
        b"\xff" * 10 + b"\x01",
        encode_uvarint(2) + b"\xff\xfe" + b"\x00" * 8 + _digest(b""),
    ],
)
def test_malformed_record_is_decode_error(raw: bytes) -> None:
    with pytest.raises(DecodeError):
        list(iter_records(io.BytesIO(raw), SHA256_SIZE))


def test_missing_sentinel_is_decode_error() -> None:
    stream = io.BytesIO(record("a", 1, _digest(b"a")))
    with pytest.raises(DecodeError):
        list(iter_records(stream, SHA256_SIZE))


@pytest.mark.parametrize(
    "raw",
    [
        b"",
        b"\x00\x00\x00\x00",
        b"\x00" * 16,
        b"\x00" * 16 + b"\x01" * 31,
    ],
)
def test_truncated_trailer_is_decode_error(raw: bytes) -> None:
    with pytest.raises(DecodeError):
        read_trailer(io.BytesIO(raw), SHA256_SIZE)


def test_data_after_trailer_is_decode_error() -> None:
    raw = trailer(0, 0, _digest(b""))[1:] + b"extra"
    with pytest.raises(DecodeError):
        read_trailer(io.BytesIO(raw), SHA256_SIZE)


def test_path_length_limit() -> None:
    too_long = encode_uvarint(MAX_PATH_LENGTH + 1) + b"x" * 8
    with pytest.raises(DecodeError):
        list(iter_records(io.BytesIO(too_long), SHA256_SIZE))
    largest = b"\xff" * 9 + b"\x01"
    with pytest.raises(DecodeError):
        list(iter_records(io.BytesIO(largest), SHA256_SIZE))


@pytest.mark.parametrize("path", ["../x", "a/../../x", "/../x", ".."])
def test_path_leaving_the_tree_is_decode_error(path: str) -> None:
    stream = io.BytesIO(record(path, 0, _digest(b"")) + b"\x00")
    with pytest.raises(DecodeError):
        list(iter_records(stream, SHA256_SIZE))


def test_dotted_names_inside_the_tree_are_kept() -> None:
    raw = record("a/../b", 0, _digest(b"")) + record("..hidden", 0, _digest(b"")) + b"\x00"
    paths = [item.path for item in iter_records(io.BytesIO(raw), SHA256_SIZE)]
    assert paths == ["a/../b", "..hidden"]
