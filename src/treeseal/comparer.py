from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional, Sequence, Set

from .config import DEFAULT_CHUNK_SIZE, Config
from .decoder import iter_records, read_header, read_trailer
from .digest import Digest
from .errors import (
    AggregateMismatchError,
    ChecksumMismatchError,
    FileNotFoundInTreeError,
    GlobalChecksumMismatchError,
    ManifestError,
    SizeMismatchError,
)
from .models import Coze, Entry, FileRecord, Status, Trailer
from .report import Reporter, summary_json
from .utils.paths import (
    clean_directories,
    find_regular_file,
    relative_key,
    walk_regular_files,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Options:
    verbose: bool = False
    pretty: bool = False
    report_added: bool = False
    chunk_size: int = DEFAULT_CHUNK_SIZE

    @classmethod
    def from_config(cls, config: Config) -> "Options":
        return cls(
            verbose=config.verbose,
            pretty=config.pretty,
            report_added=config.report_added,
            chunk_size=config.chunk_size,
        )


class Comparer:
    """Reconciles a directory tree against a binary manifest.

    The header is read at construction and fixes the checksum algorithm.
    Records are then streamed once, in manifest order, by either ``list``
    or ``compare``; an instance supports a single run because the manifest
    stream and the global digest are both consumed by it.
    """

    def __init__(
        self,
        stream: BinaryIO,
        options: Optional[Options] = None,
        reporter: Optional[Reporter] = None,
        *,
        owns_stream: bool = False,
    ) -> None:
        self.options = options or Options()
        self._stream = stream
        self._owns_stream = owns_stream
        self.algorithm = read_header(stream)
        self._digest = Digest(self.algorithm)
        self.reporter = reporter or Reporter(
            verbose=self.options.verbose, pretty=self.options.pretty
        )
        self.trailer: Optional[Trailer] = None
        self.summary: Counter[Status] = Counter()
        self._consumed = False

    @classmethod
    def open(
        cls,
        path: str | Path,
        options: Optional[Options] = None,
        reporter: Optional[Reporter] = None,
    ) -> "Comparer":
        stream = Path(path).open("rb")
        try:
            return cls(stream, options, reporter, owns_stream=True)
        except BaseException:
            stream.close()
            raise

    def close(self) -> None:
        if self._owns_stream and not self._stream.closed:
            self._stream.close()

    def __enter__(self) -> "Comparer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def list(self, directories: Iterable[str | Path]) -> Coze:
        dirs = self._begin(directories)
        cz = Coze()
        for record in iter_records(self._stream, self._digest.size):
            if find_regular_file(record.path, dirs) is None:
                raise FileNotFoundInTreeError(record.path, [str(d) for d in dirs])
            self.reporter.emit_listing(record)
            cz.update(record.size)
        logger.info(summary_json("list", self.algorithm, cz))
        return cz

    def compare(self, directories: Iterable[str | Path]) -> Coze:
        dirs = self._begin(directories)
        cz = Coze()
        recorded: Set[str] = set()
        for record in iter_records(self._stream, self._digest.size):
            entry = self._compare_record(record, dirs)
            cz.update(record.size)
            recorded.add(relative_key(record.path))
            self._emit(entry)
            self._digest.reset()

        self.trailer = read_trailer(self._stream, self._digest.size)
        if self.options.report_added:
            self._report_added(dirs, recorded)

        checksum = self._digest.global_digest()
        logger.info(
            summary_json("compare", self.algorithm, cz, self._status_counts(), checksum)
        )
        self._verify(cz, self.trailer, checksum)
        return cz

    def checksum(self) -> bytes:
        return self._digest.global_digest()

    def _begin(self, directories: Iterable[str | Path]) -> List[Path]:
        if self._consumed:
            raise RuntimeError("manifest already consumed; open a new comparer")
        self._consumed = True
        self.summary.clear()
        return clean_directories(directories)

    def _compare_record(self, record: FileRecord, dirs: Sequence[Path]) -> Entry:
        location = find_regular_file(record.path, dirs)
        if location is None:
            return Entry(Status.DELETED, record, checksum=record.checksum)
        try:
            self._digest_file(record, location)
        except (ManifestError, OSError) as exc:
            return Entry(
                Status.MODIFIED,
                record,
                location,
                self._digest.local_digest(),
                exc,
            )
        return Entry(Status.IDENTICAL, record, location, self._digest.local_digest())

    def _digest_file(self, record: FileRecord, location: Path) -> None:
        written = 0
        chunk_size = self.options.chunk_size
        with location.open("rb") as f:
            for chunk in iter(lambda: f.read(chunk_size), b""):
                written += self._digest.write(chunk)
        if written != record.size:
            raise SizeMismatchError(str(location), record.size, written)
        actual = self._digest.local_digest()
        if actual != record.checksum:
            raise ChecksumMismatchError(str(location), record.checksum, actual)

    def _report_added(self, dirs: Sequence[Path], recorded: Set[str]) -> None:
        seen = set(recorded)
        for directory in dirs:
            if not directory.is_dir():
                continue
            for rel in walk_regular_files(directory):
                if rel in seen:
                    continue
                seen.add(rel)
                location = directory / rel
                try:
                    size = location.stat().st_size
                except OSError as exc:
                    logger.debug("added: %s: %s", rel, exc)
                    continue
                record = FileRecord(path=rel, size=size, checksum=b"")
                self._emit(Entry(Status.ADDED, record, location))

    def _emit(self, entry: Entry) -> None:
        self.summary[entry.status] += 1
        if entry.error is not None:
            logger.debug("%s: %s", entry.status.name.lower(), entry.error)
        self.reporter.emit(entry)

    def _verify(self, cz: Coze, trailer: Trailer, checksum: bytes) -> None:
        expected = trailer.aggregate
        if cz != expected:
            raise AggregateMismatchError(expected, cz)
        if checksum != trailer.checksum:
            raise GlobalChecksumMismatchError(trailer.checksum, checksum)

    def _status_counts(self) -> Counter[str]:
        return Counter({status.value: n for status, n in self.summary.items()})
