"""
VIN Verify
==========

Verifies captured vehicle documents against reference CSV datasets.

Package Structure:
    vin_verify/
    ├── core/           # Identifier normalization/extraction, errors
    ├── datasets/       # Reference CSV parser and dataset store
    ├── matching/       # Identifier column resolution, matching engine
    ├── ledger/         # Verification ledger and status view
    ├── export/         # Unverified diff export
    ├── providers/      # Recognition service adapters (OCR backends)
    ├── preprocessing/  # Image preparation for local OCR
    └── session.py      # Session controller

Quick Start:
    from vin_verify import VerificationSession
    
    session = VerificationSession()
    session.ingest("fleet.csv", open("fleet.csv", encoding="utf-8").read())
    outcome = session.verify_text("車台番号: AAZH20-1002549")
    print(outcome.message)

Version: 1.0.0
"""

__version__ = "1.0.0"
__author__ = "VIN OCR Team"

# Core exports (lightweight, always available)
from .core import (
    VerificationError,
    FormatError,
    MissingColumnError,
    ServiceError,
    normalize_identifier,
    find_identifier,
    extract_identifier,
)
from .datasets import Record, ReferenceDataset, DatasetStore, parse_csv_line, parse_dataset
from .matching import MatchKind, MatchStrategy, MatchResult, match_identifier, resolve_identifier_column
from .ledger import VerificationRecord, VerificationLedger, VerificationStatus, compute_status
from .export import ExportArtifact, export_unverified, build_export
from .session import (
    VerificationSession,
    IngestResult,
    IngestStatus,
    CaptureOutcome,
    CaptureStatus,
)

__all__ = [
    "__version__",
    "__author__",
    # Core
    "VerificationError",
    "FormatError",
    "MissingColumnError",
    "ServiceError",
    "normalize_identifier",
    "find_identifier",
    "extract_identifier",
    # Datasets
    "Record",
    "ReferenceDataset",
    "DatasetStore",
    "parse_csv_line",
    "parse_dataset",
    # Matching
    "MatchKind",
    "MatchStrategy",
    "MatchResult",
    "match_identifier",
    "resolve_identifier_column",
    # Ledger
    "VerificationRecord",
    "VerificationLedger",
    "VerificationStatus",
    "compute_status",
    # Export
    "ExportArtifact",
    "export_unverified",
    "build_export",
    # Session
    "VerificationSession",
    "IngestResult",
    "IngestStatus",
    "CaptureOutcome",
    "CaptureStatus",
]


# Lazy imports for recognition providers (heavier dependencies)
def __getattr__(name: str):
    """Lazy import for provider modules."""
    if name == "RecognitionProviderFactory":
        from .providers import RecognitionProviderFactory
        return RecognitionProviderFactory
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
