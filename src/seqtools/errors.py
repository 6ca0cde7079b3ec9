"""Exceptions raised while reading paired FASTQ files."""
from __future__ import annotations

from enum import IntEnum


class ErrorKind(IntEnum):
    OPEN = 1
    FORMAT = 2
    ENCODING_RANGE = 3
    ENCODING_CONFLICT = 4


class FastqError(Exception):
    """Base class for every fatal reader error."""

    kind: ErrorKind


class FastqOpenError(FastqError):
    """An input could not be opened, or does not look like FASTQ."""

    kind = ErrorKind.OPEN


class FastqFormatError(FastqError):
    """A record is structurally malformed."""

    kind = ErrorKind.FORMAT


class EncodingRangeError(FastqError):
    """Quality characters are not representable by any known encoding."""

    kind = ErrorKind.ENCODING_RANGE


class EncodingConflictError(FastqError):
    """A record's quality encoding disagrees with the one already fixed."""

    kind = ErrorKind.ENCODING_CONFLICT
