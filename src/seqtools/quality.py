"""
Quality-score encoding detection.

FASTQ quality strings are printable ASCII.  Two offsets are in use:

- **33-based**: Sanger, Illumina 1.8+ (``'!'`` .. ``'J'`` in practice).
- **64-based**: Solexa, Illumina 1.3+ / 1.5+ (``';'`` .. ``'h'``).

A single quality string is only *conclusive* when its character range falls
outside the zone the two encodings share; otherwise the caller has to keep
sampling.
"""
from __future__ import annotations

from typing import List

from .errors import EncodingConflictError, EncodingRangeError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

QUALITY_BASE_UNKNOWN = 0
QUALITY_BASE_33 = 33
QUALITY_BASE_64 = 64

VALID_QUALITY_BASES = frozenset({QUALITY_BASE_33, QUALITY_BASE_64})

# Printable range shared by both encodings
QUALITY_CHAR_MIN = 33
QUALITY_CHAR_MAX = 126

# Plausible ceiling of 33-based data and floor of 64-based data
QBASE33_CEILING = 74
QBASE64_FLOOR = 59


def detect_quality_base(quality: str) -> int:
    """Classify one quality string.

    Returns
    -------
    int
        ``QUALITY_BASE_33``, ``QUALITY_BASE_64``, or ``QUALITY_BASE_UNKNOWN``
        when the characters sit entirely inside the ambiguous zone.

    Raises
    ------
    EncodingRangeError
        If the characters fall outside the printable range, or straddle the
        two encodings so that neither can represent them.
    """
    if not quality:
        raise EncodingRangeError("Empty quality string")

    codes = quality.encode("latin-1")
    min_qual = min(codes)
    max_qual = max(codes)

    if min_qual < QUALITY_CHAR_MIN:
        raise EncodingRangeError(f"Invalid base quality value: {min_qual} (in ascii)")
    if max_qual > QUALITY_CHAR_MAX:
        raise EncodingRangeError(f"Invalid base quality value: {max_qual} (in ascii)")
    if min_qual < QBASE64_FLOOR and max_qual > QBASE33_CEILING:
        raise EncodingRangeError(
            f"Invalid base quality range: {min_qual} - {max_qual} (in ascii)"
        )

    if max_qual > QBASE33_CEILING:
        return QUALITY_BASE_64
    if min_qual < QBASE64_FLOOR:
        return QUALITY_BASE_33
    return QUALITY_BASE_UNKNOWN


def check_quality_base(quality: str, base: int) -> int:
    """Detect the encoding of *quality* and verify it agrees with *base*.

    Inconclusive strings always agree.  Returns the detected value.
    """
    detected = detect_quality_base(quality)
    if detected != QUALITY_BASE_UNKNOWN and detected != base:
        raise EncodingConflictError(
            f"Unexpected base quality: {detected}-based value found "
            f"in a {base}-based file"
        )
    return detected


def quality_scores(quality: str, base: int) -> List[int]:
    """Convert a quality string to numeric scores using offset *base*."""
    return [c - base for c in quality.encode("latin-1")]
