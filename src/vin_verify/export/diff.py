"""
Unverified Diff Export
======================

Builds a CSV of the rows whose identifiers are still unverified, across
every loaded dataset.

The first loaded dataset's headers are the canonical schema. Rows from
other datasets are projected onto it by header name; headers they lack
export as empty cells. Fields containing the delimiter are wrapped in
quotes. Embedded quote characters are not escaped.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence

from ..datasets.models import ReferenceDataset
from ..matching.columns import (
    DEFAULT_COLUMN_INDEX,
    DEFAULT_COLUMN_KEYWORDS,
    iter_identifiers,
    resolve_identifier_column,
)

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_COLUMN = 'source file'
CSV_MIME_TYPE = 'text/csv;charset=utf-8'


@dataclass(frozen=True)
class ExportArtifact:
    """Downloadable export: suggested filename plus CSV content."""
    filename: str
    content: str
    row_count: int
    encoding: str = 'utf-8'
    mime_type: str = CSV_MIME_TYPE
    
    @property
    def data(self) -> bytes:
        return self.content.encode(self.encoding)


def _format_field(value: str, delimiter: str) -> str:
    return f'"{value}"' if delimiter in value else value


def export_unverified(
    unverified: Iterable[str],
    datasets: Sequence[ReferenceDataset],
    column_index: int = DEFAULT_COLUMN_INDEX,
    keywords: Sequence[str] = DEFAULT_COLUMN_KEYWORDS,
    source_column: str = DEFAULT_SOURCE_COLUMN,
    delimiter: str = ',',
) -> str:
    """
    Render unverified rows as CSV text.
    
    Args:
        unverified: Normalized identifiers to include
        datasets: Datasets in load order
        column_index: Fixed identifier column position
        keywords: Header keywords for the fallback column lookup
        source_column: Name of the leading column holding the source filename
        delimiter: Output delimiter
        
    Returns:
        CSV text; header line only when no row qualifies
    """
    wanted = frozenset(unverified)
    datasets = list(datasets)
    canonical: List[str] = list(datasets[0].headers) if datasets else []
    
    lines = [delimiter.join(_format_field(v, delimiter) for v in [source_column] + canonical)]
    
    for dataset in datasets:
        column = resolve_identifier_column(dataset, column_index, keywords)
        if column is None:
            continue
        own_headers = set(dataset.headers)
        exported = 0
        for _, record, value in iter_identifiers(dataset, column):
            if value not in wanted:
                continue
            cells = [dataset.filename]
            cells.extend(record.get(h, "") if h in own_headers else "" for h in canonical)
            lines.append(delimiter.join(_format_field(cell, delimiter) for cell in cells))
            exported += 1
        logger.debug(f"Exported {exported} unverified rows from '{dataset.filename}'")
    
    return "\n".join(lines)


def export_filename(prefix: str = 'unverified', on: Optional[date] = None) -> str:
    """Suggested download name, e.g. ``unverified_2024-10-01.csv``."""
    on = on or date.today()
    return f"{prefix}_{on.isoformat()}.csv"


def build_export(
    unverified: Iterable[str],
    datasets: Sequence[ReferenceDataset],
    prefix: str = 'unverified',
    on: Optional[date] = None,
    encoding: str = 'utf-8',
    **kwargs,
) -> ExportArtifact:
    """Build the export artifact (content plus suggested filename)."""
    content = export_unverified(unverified, datasets, **kwargs)
    row_count = content.count("\n")
    logger.info(f"Built unverified export with {row_count} rows")
    return ExportArtifact(
        filename=export_filename(prefix, on),
        content=content,
        row_count=row_count,
        encoding=encoding,
        mime_type=f"text/csv;charset={encoding}",
    )
