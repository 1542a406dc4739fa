"""
Verification Session
====================

The session controller owns the loaded datasets and the verification ledger
and sequences every engine call. Engine components are stateless functions;
this is the only object that holds mutable state.

Usage:
    from vin_verify import VerificationSession
    
    session = VerificationSession()
    session.ingest("fleet.csv", csv_text)
    outcome = session.verify_text(ocr_text)
    print(outcome.message)
    
    status = session.status()
    if not status.is_complete:
        artifact = session.export(status)
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from .config import VerifyConfig, get_config
from .core.errors import FormatError, ServiceError, VerificationError
from .core.identifier import find_identifier
from .datasets.models import ReferenceDataset
from .datasets.parser import parse_dataset
from .datasets.store import DatasetStore
from .export.diff import ExportArtifact, build_export
from .ledger.ledger import VerificationLedger, VerificationRecord
from .ledger.status import VerificationStatus, compute_status
from .matching.engine import MatchKind, MatchResult, match_identifier
from .sources import SourceItem, decode_text, is_media, is_tabular

logger = logging.getLogger(__name__)

# Characters of raw recognized text shown when no identifier is found
RAW_TEXT_PREVIEW = 200


# =============================================================================
# RESULT TYPES
# =============================================================================

class IngestStatus(str, Enum):
    ADDED = 'added'
    REPLACED = 'replaced'
    FAILED = 'failed'


@dataclass(frozen=True)
class IngestResult:
    """Outcome of ingesting one reference file."""
    filename: str
    status: IngestStatus
    record_count: int = 0
    dataset_count: int = 0
    error: Optional[VerificationError] = None
    
    @property
    def ok(self) -> bool:
        return self.status != IngestStatus.FAILED
    
    @property
    def message(self) -> str:
        if self.status == IngestStatus.ADDED:
            return (
                f"CSV added: {self.filename} ({self.record_count} records)\n"
                f"Loaded CSV files: {self.dataset_count}"
            )
        if self.status == IngestStatus.REPLACED:
            return f"CSV updated: {self.filename} ({self.record_count} records)"
        return f"CSV error ({self.filename}): {self.error.message if self.error else 'unknown error'}"
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            'filename': self.filename,
            'status': self.status.value,
            'record_count': self.record_count,
            'error': self.error.to_dict() if self.error else None,
        }


class CaptureStatus(str, Enum):
    """Every distinct result of verifying one captured document."""
    VERIFIED_EXACT = 'verified_exact'
    VERIFIED_PARTIAL = 'verified_partial'
    NO_MATCH = 'no_match'
    EXTRACTION_MISS = 'extraction_miss'
    SERVICE_ERROR = 'service_error'
    NO_DATASETS = 'no_datasets'
    UNSUPPORTED = 'unsupported'


@dataclass(frozen=True)
class CaptureOutcome:
    """Result of one capture attempt, with an operator-facing message."""
    status: CaptureStatus
    identifier: Optional[str] = None
    raw_text: Optional[str] = None
    match: Optional[MatchResult] = None
    entry: Optional[VerificationRecord] = None
    error: Optional[ServiceError] = None
    datasets_searched: int = 0
    source: Optional[str] = None
    
    @property
    def is_verified(self) -> bool:
        return self.status in (CaptureStatus.VERIFIED_EXACT, CaptureStatus.VERIFIED_PARTIAL)
    
    @property
    def message(self) -> str:
        status = self.status
        if status == CaptureStatus.VERIFIED_EXACT or status == CaptureStatus.VERIFIED_PARTIAL:
            if status == CaptureStatus.VERIFIED_EXACT:
                head = "Verified (exact match)"
            else:
                head = (
                    "Verified (partial match)\n\n"
                    "Note: the identifier matched only partially\n"
                    f"Extracted: {self.identifier}\n"
                    f"CSV value: {self.match.dataset_value}"
                )
            details = "\n".join(f"{k}: {v}" for k, v in self.match.record.items())
            return (
                f"{head}\n\nReference CSV: {self.match.source_file}\n"
                f"Identifier: {self.identifier}\n\n{details}"
            )
        if status == CaptureStatus.NO_MATCH:
            return (
                f"Identifier not found in any CSV file: {self.identifier}\n\n"
                f"CSV files searched: {self.datasets_searched}"
            )
        if status == CaptureStatus.EXTRACTION_MISS:
            preview = (self.raw_text or "")[:RAW_TEXT_PREVIEW]
            return f"No identifier found in the recognized text.\n\nRecognized text:\n{preview}..."
        if status == CaptureStatus.SERVICE_ERROR:
            return f"Recognition failed: {self.error.message if self.error else 'unknown error'}"
        if status == CaptureStatus.NO_DATASETS:
            return "Upload a reference CSV before capturing documents."
        return f"Unsupported file type{f' ({self.source})' if self.source else ''}. Select a CSV, image or PDF."
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'identifier': self.identifier,
            'source': self.source,
            'match': self.match.to_dict() if self.match else None,
            'error': self.error.to_dict() if self.error else None,
            'datasets_searched': self.datasets_searched,
            'message': self.message,
        }


# =============================================================================
# SESSION CONTROLLER
# =============================================================================

class VerificationSession:
    """
    Session-scoped owner of reference datasets and the verification ledger.
    
    Not thread-safe: callers serialize access, one matching or ledger
    operation at a time.
    """
    
    def __init__(self, config: Optional[VerifyConfig] = None, ledger: Optional[VerificationLedger] = None):
        self.config = config or get_config()
        self.datasets = DatasetStore()
        self.ledger = ledger or VerificationLedger()
    
    # -------------------------------------------------------------------------
    # Ingestion
    # -------------------------------------------------------------------------
    
    def ingest(self, filename: str, text: str) -> IngestResult:
        """
        Parse reference text and add it, replacing a same-named dataset.
        
        A FormatError is captured in the result; other loaded datasets are
        untouched.
        """
        parser = self.config.parser
        try:
            dataset = parse_dataset(
                text,
                filename=filename,
                preamble_lines=parser.preamble_lines,
                delimiter=parser.delimiter,
                quote_char=parser.quote_char,
            )
        except FormatError as e:
            logger.warning(f"Rejected '{filename}': {e.message}")
            return IngestResult(filename, IngestStatus.FAILED, dataset_count=len(self.datasets), error=e)
        
        replaced = self.datasets.put(dataset)
        return IngestResult(
            filename=filename,
            status=IngestStatus.REPLACED if replaced else IngestStatus.ADDED,
            record_count=dataset.record_count,
            dataset_count=len(self.datasets),
        )
    
    def ingest_item(self, item: SourceItem) -> IngestResult:
        """Decode and ingest one uploaded CSV file."""
        try:
            text = decode_text(item.content)
        except UnicodeDecodeError as e:
            error = FormatError(f"cannot decode file: {e.reason}", filename=item.filename)
            logger.warning(f"Rejected '{item.filename}': {error.message}")
            return IngestResult(item.filename, IngestStatus.FAILED, dataset_count=len(self.datasets), error=error)
        return self.ingest(item.filename, text)
    
    def ingest_batch(self, items: Iterable[SourceItem]) -> List[IngestResult]:
        """Ingest files one at a time; a failed file never aborts the rest."""
        return [self.ingest_item(item) for item in items]
    
    # -------------------------------------------------------------------------
    # Verification
    # -------------------------------------------------------------------------
    
    def match(self, identifier: str) -> Optional[MatchResult]:
        """Resolve an identifier against all loaded datasets without recording."""
        matching = self.config.matching
        return match_identifier(
            identifier,
            self.datasets.as_list(),
            column_index=matching.identifier_column_index,
            keywords=matching.column_keywords,
            strategy=matching.strategy,
        )
    
    def verify_text(self, text: str, source: Optional[str] = None) -> CaptureOutcome:
        """
        Extract an identifier from recognized text, match it and record a hit.
        """
        if len(self.datasets) == 0:
            return CaptureOutcome(CaptureStatus.NO_DATASETS, raw_text=text, source=source)
        
        found = find_identifier(text, label_keywords=self.config.extraction.label_keywords)
        if found is None:
            logger.info("No identifier found in recognized text")
            return CaptureOutcome(CaptureStatus.EXTRACTION_MISS, raw_text=text, source=source)
        
        identifier = found.identifier
        result = self.match(identifier)
        if result is None:
            return CaptureOutcome(
                CaptureStatus.NO_MATCH,
                identifier=identifier,
                raw_text=text,
                datasets_searched=len(self.datasets),
                source=source,
            )
        
        entry = self.ledger.record(result)
        status = CaptureStatus.VERIFIED_EXACT if result.kind == MatchKind.EXACT else CaptureStatus.VERIFIED_PARTIAL
        return CaptureOutcome(
            status,
            identifier=identifier,
            raw_text=text,
            match=result,
            entry=entry,
            datasets_searched=len(self.datasets),
            source=source,
        )
    
    def verify_media(self, content: bytes, mime_type: str, provider, source: Optional[str] = None) -> CaptureOutcome:
        """
        Recognize captured media with a provider, then verify the text.
        
        A ServiceError fails only this capture; session state is unchanged.
        """
        if len(self.datasets) == 0:
            return CaptureOutcome(CaptureStatus.NO_DATASETS, source=source)
        
        try:
            recognized = provider.recognize_with_retry(content, mime_type)
        except ServiceError as e:
            logger.error(f"Recognition failed for {source or 'capture'}: {e}")
            return CaptureOutcome(CaptureStatus.SERVICE_ERROR, error=e, source=source)
        
        return self.verify_text(recognized.text, source=source)
    
    def process_sources(self, items: Iterable[SourceItem], provider=None) -> List[Union[IngestResult, CaptureOutcome]]:
        """
        Route uploaded files in order: CSVs are ingested, media is verified.
        
        Each item's result is captured independently. Media items are
        reported as unsupported when no provider is given.
        """
        results: List[Union[IngestResult, CaptureOutcome]] = []
        for item in items:
            if is_tabular(item):
                results.append(self.ingest_item(item))
            elif is_media(item) and provider is not None:
                results.append(self.verify_media(item.content, item.mime_type, provider, source=item.filename))
            else:
                results.append(CaptureOutcome(CaptureStatus.UNSUPPORTED, source=item.filename))
        return results
    
    # -------------------------------------------------------------------------
    # Status and export
    # -------------------------------------------------------------------------
    
    def status(self) -> VerificationStatus:
        matching = self.config.matching
        return compute_status(
            self.datasets.as_list(),
            self.ledger,
            column_index=matching.identifier_column_index,
            keywords=matching.column_keywords,
        )
    
    def progress(self) -> Dict[str, int]:
        """Ledger entries against total records loaded."""
        return {
            'verified_entries': len(self.ledger),
            'total_records': self.datasets.total_records,
            'datasets': len(self.datasets),
        }
    
    def export(self, status: Optional[VerificationStatus] = None, on: Optional[date] = None) -> ExportArtifact:
        """Build the unverified-rows export from a (fresh or given) status."""
        status = status or self.status()
        matching = self.config.matching
        export = self.config.export
        return build_export(
            status.unverified,
            self.datasets.as_list(),
            prefix=export.filename_prefix,
            on=on,
            encoding=export.encoding,
            column_index=matching.identifier_column_index,
            keywords=matching.column_keywords,
            source_column=export.source_column,
            delimiter=self.config.parser.delimiter,
        )
    
    @property
    def loaded(self) -> List[ReferenceDataset]:
        return self.datasets.as_list()
