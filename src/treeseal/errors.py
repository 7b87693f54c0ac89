"""Exception types raised while reading and verifying a manifest.

Convention:
- Structural errors (``UnknownAlgorithmError``, ``DecodeError``,
  ``AggregateMismatchError``, ``GlobalChecksumMismatchError``) abort the run
  and reach the caller.
- Per-file errors (``SizeMismatchError``, ``ChecksumMismatchError`` and plain
  ``OSError``) are absorbed into the entry's classification and only show up
  in verbose reports and debug logs.
- ``FileNotFoundInTreeError`` is fatal when listing and becomes a ``Deleted``
  classification when comparing.
"""

from __future__ import annotations

from typing import Sequence


class ManifestError(Exception):
    pass


class UnknownAlgorithmError(ManifestError, LookupError):
    def __init__(self, name: str) -> None:
        super().__init__(f"unknown checksum algorithm: {name!r}")
        self.name = name


class DecodeError(ManifestError, ValueError):
    pass


class FileNotFoundInTreeError(ManifestError):
    def __init__(self, path: str, directories: Sequence[str] = ()) -> None:
        super().__init__(f"{path}: no such file")
        self.path = path
        self.directories = list(directories)


class SizeMismatchError(ManifestError):
    def __init__(self, path: str, expected: int, actual: int) -> None:
        super().__init__(f"{path}: size mismatched ({expected} != {actual})")
        self.path = path
        self.expected = expected
        self.actual = actual


class ChecksumMismatchError(ManifestError):
    def __init__(self, path: str, expected: bytes, actual: bytes) -> None:
        super().__init__(
            f"{path}: checksum mismatched ({expected.hex()} != {actual.hex()})"
        )
        self.path = path
        self.expected = expected
        self.actual = actual


class AggregateMismatchError(ManifestError):
    def __init__(self, expected, actual) -> None:
        super().__init__(
            "final count/size mismatched "
            f"(expected count={expected.count} size={expected.size}, "
            f"got count={actual.count} size={actual.size})"
        )
        self.expected = expected
        self.actual = actual


class GlobalChecksumMismatchError(ChecksumMismatchError):
    def __init__(self, expected: bytes, actual: bytes) -> None:
        ManifestError.__init__(
            self,
            f"final checksum mismatched ({actual.hex()} != {expected.hex()})",
        )
        self.path = ""
        self.expected = expected
        self.actual = actual
