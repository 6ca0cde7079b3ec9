"""
Read-pair quality check.

A read is *low quality* when too many of its bases score at or below
``low_quality``.  ``low_base_threshold`` is an absolute base count when it
is 1 or more, and a fraction of the read length otherwise.  A pair is low
quality when either of its reads is.
"""
from __future__ import annotations

from dataclasses import dataclass

from .fastq import PairedFastqReader, Record, RecordPair
from .quality import QUALITY_BASE_33, VALID_QUALITY_BASES

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_LOW_QUALITY = 5
DEFAULT_LOW_BASE_THRESHOLD = 0.5
DEFAULT_MAX_PAIRS = 1_000_000
MIN_MAX_PAIRS = 10_000

# Used when detection ran out of input before the encoding was settled
DEFAULT_QUALITY_BASE = QUALITY_BASE_33


@dataclass(slots=True)
class ReadQCConfig:
    """Thresholds for one quality-check run."""

    low_quality: int = DEFAULT_LOW_QUALITY
    low_base_threshold: float = DEFAULT_LOW_BASE_THRESHOLD
    max_pairs: int = DEFAULT_MAX_PAIRS
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.low_base_threshold < 0:
            raise ValueError(
                f"low_base_threshold must be non-negative, got {self.low_base_threshold}"
            )
        if self.max_pairs < 1:
            raise ValueError(f"max_pairs must be positive, got {self.max_pairs}")


@dataclass(slots=True)
class ReadQCResult:
    low_quality_pairs: int = 0
    total_pairs: int = 0

    def format(self) -> str:
        return f"{self.low_quality_pairs}\t{self.total_pairs}"


class QualityClassifier:
    """Flag low-quality reads and pairs under a fixed quality offset."""

    __slots__ = ("_low_quality", "_threshold", "_base")

    def __init__(self, config: ReadQCConfig, quality_base: int) -> None:
        if quality_base not in VALID_QUALITY_BASES:
            raise ValueError(
                f"quality_base must be one of {sorted(VALID_QUALITY_BASES)}, "
                f"got {quality_base}"
            )
        self._low_quality = config.low_quality
        self._threshold = config.low_base_threshold
        self._base = quality_base

    @property
    def quality_base(self) -> int:
        return self._base

    def count_low_quality(self, quality: str) -> int:
        """Number of bases scoring at or below the low-quality ceiling."""
        ceiling = self._low_quality + self._base
        return sum(1 for c in quality.encode("latin-1") if c <= ceiling)

    def is_low_quality(self, low_quality_count: int, base_count: int) -> bool:
        if self._threshold >= 1:
            return low_quality_count > self._threshold
        return low_quality_count > base_count * self._threshold

    def is_low_quality_read(self, record: Record) -> bool:
        quality = record.quality
        return self.is_low_quality(self.count_low_quality(quality), len(quality))

    def is_low_quality_pair(self, pair: RecordPair) -> bool:
        return self.is_low_quality_read(pair.read1) or self.is_low_quality_read(pair.read2)


def run_readqc(reader: PairedFastqReader, config: ReadQCConfig) -> ReadQCResult:
    """Classify up to ``config.max_pairs`` pairs from *reader*.

    Reader errors propagate; the reader keeps them for ``reader.error``.
    """
    classifier = QualityClassifier(
        config, reader.quality_base or DEFAULT_QUALITY_BASE
    )
    is_low = classifier.is_low_quality_pair
    read_pair = reader.read_pair
    max_pairs = config.max_pairs

    result = ReadQCResult()
    while result.total_pairs < max_pairs:
        pair = read_pair()
        if pair is None:
            break
        result.total_pairs += 1
        if is_low(pair):
            result.low_quality_pairs += 1
    return result
