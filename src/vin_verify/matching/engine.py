"""
Matching Engine
===============

Resolves a candidate identifier against the loaded reference datasets.

Datasets are searched in load order. Within a dataset, rows are scanned in
order and each row is checked for an exact match, then for a partial match
(either value contains the other), before moving to the next row. The first
row that satisfies either check ends the whole search, so an earlier
partial row wins over a later exact row.

``MatchStrategy.EXACT_FIRST`` is an opt-in variant that scans a dataset for
exact matches before considering partial ones.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Sequence, Union

from ..core.identifier import normalize_identifier
from ..datasets.models import Record, ReferenceDataset
from .columns import (
    DEFAULT_COLUMN_INDEX,
    DEFAULT_COLUMN_KEYWORDS,
    iter_identifiers,
    resolve_identifier_column,
)

logger = logging.getLogger(__name__)


class MatchKind(str, Enum):
    """How a candidate matched a row."""
    EXACT = 'exact'
    PARTIAL = 'partial'


class MatchStrategy(str, Enum):
    """Row scanning strategy within one dataset."""
    ROW_ORDER = 'row_order'
    EXACT_FIRST = 'exact_first'


@dataclass(frozen=True)
class MatchResult:
    """
    A resolved match. Not persisted; the caller decides whether to record it.
    
    Attributes:
        record: The matched row
        kind: exact or partial
        dataset_value: The row's identifier cell as written in the dataset
        source_file: Filename of the dataset the row came from
        candidate: The normalized identifier that was searched for
        column: Identifier column used in that dataset
        row_index: Zero-based position of the row among the dataset's records
    """
    record: Record
    kind: MatchKind
    dataset_value: str
    source_file: str
    candidate: str
    column: str = ""
    row_index: int = -1
    
    @property
    def is_exact(self) -> bool:
        return self.kind == MatchKind.EXACT
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'candidate': self.candidate,
            'kind': self.kind.value,
            'dataset_value': self.dataset_value,
            'source_file': self.source_file,
            'column': self.column,
            'row_index': self.row_index,
            'record': dict(self.record),
        }


def _classify(candidate: str, value: str) -> Optional[MatchKind]:
    if value == candidate:
        return MatchKind.EXACT
    if candidate in value or value in candidate:
        return MatchKind.PARTIAL
    return None


def _build_result(dataset, column, row_index, record, kind, candidate) -> MatchResult:
    return MatchResult(
        record=record,
        kind=kind,
        dataset_value=record.get(column, ""),
        source_file=dataset.filename,
        candidate=candidate,
        column=column,
        row_index=row_index,
    )


def _scan_row_order(dataset, column, candidate) -> Optional[MatchResult]:
    for row_index, record, value in iter_identifiers(dataset, column):
        kind = _classify(candidate, value)
        if kind is not None:
            return _build_result(dataset, column, row_index, record, kind, candidate)
    return None


def _scan_exact_first(dataset, column, candidate) -> Optional[MatchResult]:
    partial = None
    for row_index, record, value in iter_identifiers(dataset, column):
        kind = _classify(candidate, value)
        if kind == MatchKind.EXACT:
            return _build_result(dataset, column, row_index, record, kind, candidate)
        if kind == MatchKind.PARTIAL and partial is None:
            partial = _build_result(dataset, column, row_index, record, kind, candidate)
    return partial


_SCANNERS = {
    MatchStrategy.ROW_ORDER: _scan_row_order,
    MatchStrategy.EXACT_FIRST: _scan_exact_first,
}


def match_identifier(
    identifier: str,
    datasets: Iterable[ReferenceDataset],
    column_index: int = DEFAULT_COLUMN_INDEX,
    keywords: Sequence[str] = DEFAULT_COLUMN_KEYWORDS,
    strategy: Union[str, MatchStrategy] = MatchStrategy.ROW_ORDER,
) -> Optional[MatchResult]:
    """
    Search datasets for a row matching the candidate identifier.
    
    A dataset without an identifier column is skipped, as is a dataset in
    which no row matches; only a found match ends the search.
    
    Args:
        identifier: Candidate identifier (normalized here if it is not already)
        datasets: Datasets in load order
        column_index: Fixed identifier column position
        keywords: Header keywords for the fallback column lookup
        strategy: Row scanning strategy
        
    Returns:
        MatchResult, or None once every dataset has been exhausted
    """
    candidate = normalize_identifier(identifier)
    if not candidate:
        return None
    
    scan = _SCANNERS[MatchStrategy(strategy)]
    
    searched = 0
    for dataset in datasets:
        column = resolve_identifier_column(dataset, column_index, keywords)
        if column is None:
            logger.debug(f"No identifier column in '{dataset.filename}', skipping")
            continue
        
        searched += 1
        result = scan(dataset, column, candidate)
        if result is not None:
            logger.info(
                f"{result.kind.value} match for {candidate} in '{dataset.filename}' "
                f"(row {result.row_index}, value {result.dataset_value!r})"
            )
            return result
    
    logger.info(f"No match for {candidate} ({searched} datasets searched)")
    return None
