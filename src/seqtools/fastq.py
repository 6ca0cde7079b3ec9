"""
Paired-end FASTQ reader.

Two FASTQ files are read in lockstep, one four-line record from each per
call.  When the quality encoding is not given up front it is detected by
reading pairs ahead until one quality string is conclusive; the pairs read
ahead are kept in a :class:`RecordCache` and handed back first, so the
caller sees every pair exactly once and in file order.

Record layout::

    @<name>
    <sequence>
    +[comment]
    <quality>

Inputs may be plain text, gzip, or zstd; the format is sniffed from the
leading magic bytes rather than the file extension.
"""
from __future__ import annotations

import gzip
import io
import sys
import zstandard
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Iterator, List, Optional, Tuple

from .errors import FastqError, FastqFormatError, FastqOpenError
from .quality import (
    QUALITY_BASE_UNKNOWN,
    VALID_QUALITY_BASES,
    check_quality_base,
    detect_quality_base,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

RECORD_MARKER = "@"
SEPARATOR_MARKER = "+"

_GZIP_MAGIC = b"\x1f\x8b"
_ZSTD_MAGIC = b"\x28\xb5\x2f\xfd"

# Cache growth increments
_MIN_INCREMENT = 16
_MAX_INCREMENT = 256

# Errors a decompressor may raise on a damaged stream
_STREAM_ERRORS = (OSError, EOFError, zstandard.ZstdError)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Record:
    """One sequencing read.  ``name`` keeps its leading ``@``."""

    name: str
    sequence: str
    quality: str


@dataclass(frozen=True, slots=True)
class RecordPair:
    """The two ends of one fragment, read at the same offset of both files."""

    read1: Record
    read2: Record


# ---------------------------------------------------------------------------
# Input streams
# ---------------------------------------------------------------------------

class FastqStream:
    """Line reader over one plain, gzip or zstd FASTQ input.

    Lines are returned without their trailing newline; ``None`` signals end
    of input.  ``lineno`` is the 1-based number of the last line returned.
    """

    __slots__ = ("path", "lineno", "_raw", "_fh", "_owns_raw")

    def __init__(self, path: str) -> None:
        self.path = path
        self.lineno = 0
        self._raw: Optional[BinaryIO] = None
        self._fh: Optional[BinaryIO] = None
        self._owns_raw = path != "-"

        try:
            if path == "-":
                self._raw = sys.stdin.buffer
            else:
                self._raw = open(path, "rb")
            self._fh = self._wrap(self._raw)
            first = self._fh.peek(1)[:1]
        except _STREAM_ERRORS as exc:
            self.close()
            raise FastqOpenError(f"Can not open read file '{path}': {exc}") from exc

        if first != RECORD_MARKER.encode("ascii"):
            self.close()
            raise FastqOpenError(f"Read file '{path}' is not in FASTQ format!")

    @staticmethod
    def _wrap(raw: BinaryIO) -> BinaryIO:
        magic = raw.peek(len(_ZSTD_MAGIC))[: len(_ZSTD_MAGIC)]
        if magic.startswith(_GZIP_MAGIC):
            return gzip.GzipFile(fileobj=raw, mode="rb")
        if magic == _ZSTD_MAGIC:
            dctx = zstandard.ZstdDecompressor()
            return io.BufferedReader(
                dctx.stream_reader(raw, read_across_frames=True, closefd=False)
            )
        return raw

    def readline(self) -> Optional[str]:
        try:
            line = self._fh.readline()
        except _STREAM_ERRORS as exc:
            raise FastqFormatError(
                f"Corrupt input after line {self.lineno} of file '{self.path}': {exc}"
            ) from exc
        if not line:
            return None
        self.lineno += 1
        if line[-1] == 10:  # \n
            line = line[:-1]
        return line.decode("latin-1")

    def close(self) -> None:
        fh, raw = self._fh, self._raw
        self._fh = self._raw = None
        try:
            if fh is not None and fh is not raw:
                fh.close()
        finally:
            if raw is not None and self._owns_raw:
                raw.close()


# ---------------------------------------------------------------------------
# Record cache
# ---------------------------------------------------------------------------

class RecordCache:
    """Records read ahead during encoding detection, replayed in order.

    Records are stored interleaved (read1, read2, read1, read2, ...), so each
    replayed pair consumes two slots.
    """

    __slots__ = ("_data", "size", "capacity", "replay_cursor")

    def __init__(self) -> None:
        self._data: List[Optional[Record]] = []
        self.size = 0
        self.capacity = 0
        self.replay_cursor = 0

    def __len__(self) -> int:
        return self.size

    @property
    def pending(self) -> int:
        """Number of cached records not yet replayed."""
        return self.size - self.replay_cursor

    def append(self, record: Record) -> None:
        self._reserve(self.size + 1)
        self._data[self.size] = record
        self.size += 1

    def replay_pair(self) -> Tuple[Record, Record]:
        if self.pending < 2:
            raise IndexError("No cached pair left to replay")
        i = self.replay_cursor
        self.replay_cursor += 2
        return self._data[i], self._data[i + 1]

    def clear(self) -> None:
        self._data = []
        self.size = 0
        self.capacity = 0
        self.replay_cursor = 0

    def _reserve(self, size: int) -> None:
        if self.capacity >= size:
            return
        capacity = self.capacity
        while capacity < size:
            if capacity < _MIN_INCREMENT:
                capacity += _MIN_INCREMENT
            elif capacity > _MAX_INCREMENT:
                capacity += _MAX_INCREMENT
            else:
                capacity += capacity
        self._data.extend([None] * (capacity - self.capacity))
        self.capacity = capacity


# ---------------------------------------------------------------------------
# Paired reader
# ---------------------------------------------------------------------------

class ReaderState(Enum):
    OPENING = "opening"
    DETECTING = "detecting"
    STREAMING = "streaming"
    CLOSED = "closed"
    FAILED = "failed"


class PairedFastqReader:
    """Read two FASTQ files as a stream of :class:`RecordPair`.

    Parameters
    ----------
    path1, path2
        Read 1 and read 2 inputs.  ``"-"`` reads from stdin.
    quality_base
        ``33`` or ``64`` if known; ``None`` auto-detects.
    check_length
        Reject records whose quality string length differs from the
        sequence length.

    Raises
    ------
    FastqOpenError
        If either input cannot be opened or does not start with ``@``.
    FastqError
        If a record read during encoding detection is invalid.  Both
        inputs are closed before the error propagates.
    """

    def __init__(
        self,
        path1: str,
        path2: str,
        quality_base: int | None = None,
        check_length: bool = True,
    ) -> None:
        if quality_base is not None and quality_base not in VALID_QUALITY_BASES:
            raise ValueError(
                f"quality_base must be one of {sorted(VALID_QUALITY_BASES)} "
                f"or None, got {quality_base}"
            )

        self.path1 = path1
        self.path2 = path2
        self.state = ReaderState.OPENING
        self._quality_base = quality_base
        self._check_length = check_length
        self._cache = RecordCache()
        self._error: Optional[FastqError] = None
        self._stream1: Optional[FastqStream] = None
        self._stream2: Optional[FastqStream] = None

        try:
            self._stream1 = FastqStream(path1)
            self._stream2 = FastqStream(path2)
            if self._quality_base is None:
                self.state = ReaderState.DETECTING
                self._detect()
        except BaseException as exc:
            if isinstance(exc, FastqError):
                self._error = exc
            self.state = ReaderState.FAILED
            self.close()
            raise
        self.state = ReaderState.STREAMING

    # -- context manager -----------------------------------------------------

    def __enter__(self) -> PairedFastqReader:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.close()

    def __iter__(self) -> Iterator[RecordPair]:
        while True:
            pair = self.read_pair()
            if pair is None:
                return
            yield pair

    # -- public --------------------------------------------------------------

    @property
    def quality_base(self) -> int | None:
        """Resolved quality offset, or ``None`` if the input never settled it."""
        return self._quality_base

    @property
    def error(self) -> Optional[FastqError]:
        """The first fatal error this reader hit, if any."""
        return self._error

    @property
    def has_error(self) -> bool:
        return self._error is not None

    def read_pair(self) -> Optional[RecordPair]:
        """Return the next pair, or ``None`` at the end of input.

        Once an error has been raised, every later call raises it again.
        """
        if self._error is not None:
            raise self._error
        if self.state is ReaderState.CLOSED:
            raise ValueError("I/O operation on closed reader")

        if self._cache.pending:
            read1, read2 = self._cache.replay_pair()
            return RecordPair(read1, read2)

        try:
            return self._load_pair()
        except FastqError as exc:
            self._error = exc
            self.state = ReaderState.FAILED
            raise

    def close(self) -> None:
        """Release both inputs and the cache.  Safe to call repeatedly."""
        self._cache.clear()
        stream1, stream2 = self._stream1, self._stream2
        self._stream1 = self._stream2 = None
        try:
            if stream2 is not None:
                stream2.close()
        finally:
            if stream1 is not None:
                stream1.close()
        if self.state is not ReaderState.FAILED:
            self.state = ReaderState.CLOSED

    # -- private -------------------------------------------------------------

    def _detect(self) -> None:
        """Read ahead until the quality base is fixed or the input ends."""
        append = self._cache.append
        while self._quality_base is None:
            pair = self._load_pair()
            if pair is None:
                break
            append(pair.read1)
            append(pair.read2)

    def _load_pair(self) -> Optional[RecordPair]:
        read1 = self._load_record(self._stream1)
        if read1 is None:
            return None
        read2 = self._load_record(self._stream2)
        if read2 is None:
            raise FastqFormatError(
                f"Read file '{self.path2}' has fewer reads than '{self.path1}'!"
            )
        return RecordPair(read1, read2)

    def _load_record(self, stream: FastqStream) -> Optional[Record]:
        name = stream.readline()
        if name is None:
            return None
        if not name.startswith(RECORD_MARKER):
            raise FastqFormatError(
                f"'{RECORD_MARKER}' is expected in line {stream.lineno} of file '{stream.path}'!"
            )
        if len(name) <= 1:
            raise FastqFormatError(
                f"Unexpected empty read name in line {stream.lineno} of file '{stream.path}'!"
            )

        sequence = self._next_line(stream)
        if not sequence:
            raise FastqFormatError(
                f"Unexpected empty sequence in line {stream.lineno} of file '{stream.path}'!"
            )

        separator = self._next_line(stream)
        if not separator.startswith(SEPARATOR_MARKER):
            raise FastqFormatError(
                f"'{SEPARATOR_MARKER}' is expected in line {stream.lineno} of file '{stream.path}'!"
            )

        quality = self._next_line(stream)
        if self._check_length and len(quality) != len(sequence):
            raise FastqFormatError(
                f"Quality length {len(quality)} does not match sequence length "
                f"{len(sequence)} in line {stream.lineno} of file '{stream.path}'!"
            )

        try:
            self._update_quality_base(quality)
        except FastqError as exc:
            raise type(exc)(
                f"{exc} in line {stream.lineno} of file '{stream.path}'"
            ) from None

        return Record(name, sequence, quality)

    @staticmethod
    def _next_line(stream: FastqStream) -> str:
        line = stream.readline()
        if line is None:
            raise FastqFormatError(
                f"Truncated record after line {stream.lineno} of file '{stream.path}'!"
            )
        return line

    def _update_quality_base(self, quality: str) -> None:
        if self._quality_base is None:
            detected = detect_quality_base(quality)
            if detected != QUALITY_BASE_UNKNOWN:
                self._quality_base = detected
        else:
            check_quality_base(quality, self._quality_base)


# ---------------------------------------------------------------------------
# Convenience helpers
# ---------------------------------------------------------------------------


def open_paired_fastq(
    path1: str,
    path2: str,
    quality_base: int | None = None,
    check_length: bool = True,
) -> PairedFastqReader:
    """Open a paired FASTQ set; see :class:`PairedFastqReader`."""
    return PairedFastqReader(
        path1, path2, quality_base=quality_base, check_length=check_length
    )
