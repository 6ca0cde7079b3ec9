__version__ = "0.1.0"


from .errors import (
    ErrorKind, FastqError, FastqOpenError, FastqFormatError,
    EncodingRangeError, EncodingConflictError,
)
from .quality import (
    QUALITY_BASE_33, QUALITY_BASE_64, QUALITY_BASE_UNKNOWN,
    detect_quality_base, check_quality_base, quality_scores,
)
from .fastq import (
    Record, RecordPair, RecordCache, ReaderState,
    PairedFastqReader, open_paired_fastq,
)
from .readqc import ReadQCConfig, ReadQCResult, QualityClassifier, run_readqc


__all__ = [
    "ErrorKind", "FastqError", "FastqOpenError", "FastqFormatError",
    "EncodingRangeError", "EncodingConflictError",
    "QUALITY_BASE_33", "QUALITY_BASE_64", "QUALITY_BASE_UNKNOWN",
    "detect_quality_base", "check_quality_base", "quality_scores",
    "Record", "RecordPair", "RecordCache", "ReaderState",
    "PairedFastqReader", "open_paired_fastq",
    "ReadQCConfig", "ReadQCResult", "QualityClassifier", "run_readqc",
    "__version__",
]
