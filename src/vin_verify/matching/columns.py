"""
Identifier column resolution.

The reference format carries the identifier in a fixed column (I, index 8).
Datasets that do not reach that column fall back to the first header that
mentions a known identifier keyword.
"""

import logging
from typing import Iterator, Optional, Sequence, Tuple

from ..core.errors import MissingColumnError
from ..core.identifier import DEFAULT_LABEL_KEYWORDS, normalize_identifier
from ..datasets.models import Record, ReferenceDataset

logger = logging.getLogger(__name__)

DEFAULT_COLUMN_INDEX = 8
DEFAULT_COLUMN_KEYWORDS: Tuple[str, ...] = DEFAULT_LABEL_KEYWORDS


def resolve_identifier_column(
    dataset: ReferenceDataset,
    column_index: int = DEFAULT_COLUMN_INDEX,
    keywords: Sequence[str] = DEFAULT_COLUMN_KEYWORDS,
) -> Optional[str]:
    """
    Find the header holding identifiers in a dataset.
    
    The fixed position wins whenever it holds a named header, even if a
    keyword header exists elsewhere. Otherwise the first header containing
    any keyword (case-insensitive) is used.
    
    Returns:
        Header name, or None if the dataset has no usable identifier column
    """
    positional = dataset.header_at(column_index)
    if positional is not None and column_index not in dataset.unnamed_columns:
        return positional
    
    upper_keywords = [k.upper() for k in keywords]
    for header in dataset.headers:
        upper = header.upper()
        if any(keyword in upper for keyword in upper_keywords):
            return header
    
    return None


def missing_column(dataset: ReferenceDataset) -> MissingColumnError:
    """Describe a dataset that was skipped for lack of an identifier column."""
    return MissingColumnError(dataset.filename, dataset.headers)


def iter_identifiers(dataset: ReferenceDataset, column: str) -> Iterator[Tuple[int, Record, str]]:
    """
    Yield (row_index, record, normalized_identifier) in row order.
    
    Rows with an empty identifier cell are skipped.
    """
    for row_index, record in enumerate(dataset.records):
        normalized = normalize_identifier(record.get(column))
        if normalized:
            yield row_index, record, normalized
