from __future__ import annotations

import json
import sys
from collections import Counter
from typing import Optional, TextIO

from .models import Coze, Entry, FileRecord, Status
from .utils.sizes import format_size


class Reporter:
    """Writes one line per entry when verbose output is on."""

    def __init__(
        self,
        verbose: bool = False,
        pretty: bool = False,
        stream: Optional[TextIO] = None,
    ) -> None:
        self._verbose = bool(verbose)
        self._pretty = bool(pretty)
        self._stream = stream

    def emit(self, entry: Entry) -> None:
        if not self._verbose:
            return
        line = format_compare_line(entry, pretty=self._pretty)
        if entry.status is Status.MODIFIED and entry.error is not None:
            line = f"{line}  ({entry.error})"
        self._write(line)

    def emit_listing(self, record: FileRecord) -> None:
        if not self._verbose:
            return
        self._write(format_list_line(record, pretty=self._pretty))

    def _write(self, line: str) -> None:
        stream = self._stream or sys.stdout
        stream.write(line + "\n")


def format_list_line(record: FileRecord, pretty: bool = False) -> str:
    return f"{_format_size(record.size, pretty)}  {record.checksum.hex()}  {record.path}"


def format_compare_line(entry: Entry, pretty: bool = False) -> str:
    size = _format_size(entry.record.size, pretty)
    return f"{entry.status.value}  {size}  {entry.checksum.hex()}  {entry.record.path}"


def summary_json(
    event: str,
    algorithm: str,
    aggregate: Coze,
    counts: Optional[Counter] = None,
    checksum: bytes = b"",
) -> str:
    payload = {
        "event": event,
        "algorithm": algorithm,
        "count": aggregate.count,
        "size": aggregate.size,
    }
    if counts:
        payload["statuses"] = dict(sorted(counts.items()))
    if checksum:
        payload["checksum"] = checksum.hex()
    return json.dumps(payload, separators=(",", ":"))


def _format_size(size: int, pretty: bool) -> str:
    if pretty:
        return f"{format_size(size):<8}"
    return f"{int(size):<12}"
