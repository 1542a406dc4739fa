"""
Reference CSV Parser
====================

Turns raw delimited text into a ReferenceDataset.

Expected layout (blank lines ignored):
    line 1      title            (preamble, skipped)
    line 2      metadata         (preamble, skipped)
    line 3      header row
    line 4..N   data rows

Usage:
    from vin_verify.datasets import parse_dataset
    
    dataset = parse_dataset(text, filename="fleet_2024.csv")
    print(dataset.headers, dataset.record_count)
"""

import logging
from typing import List

from ..core.errors import FormatError
from .models import ReferenceDataset, Record

logger = logging.getLogger(__name__)


def parse_csv_line(line: str, delimiter: str = ',', quote_char: str = '"') -> List[str]:
    """
    Split one line into trimmed field values.
    
    A quote character toggles quoted mode wherever it appears, so leading
    whitespace of any kind before an opening quote does not break the
    field. Delimiters inside quoted sections are kept, and a doubled quote
    inside a quoted section decodes to one literal quote. If a value still
    starts and ends with a quote after trimming, those outer quotes are
    stripped.
    
    Examples:
        >>> parse_csv_line('a, "b,c" ,d')
        ['a', 'b,c', 'd']
    """
    values: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    while i < len(line):
        char = line[i]
        if char == quote_char:
            if in_quotes and line[i + 1:i + 2] == quote_char:
                current.append(quote_char)
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            values.append(_clean_field(''.join(current), quote_char))
            current = []
        else:
            current.append(char)
        i += 1
    values.append(_clean_field(''.join(current), quote_char))
    return values


def _clean_field(value: str, quote_char: str) -> str:
    value = value.strip()
    if len(value) > 1 and value.startswith(quote_char) and value.endswith(quote_char):
        value = value[1:-1]
    return value


def _dedupe_headers(raw_headers: List[str]):
    """Make header names unique; blank headers get positional names."""
    headers: List[str] = []
    unnamed = set()
    seen = set()
    for index, name in enumerate(raw_headers):
        if not name:
            name = f"column_{index + 1}"
            unnamed.add(index)
        candidate = name
        suffix = 2
        while candidate in seen:
            candidate = f"{name}_{suffix}"
            suffix += 1
        if candidate != name:
            logger.warning(f"Duplicate header '{name}' renamed to '{candidate}'")
        seen.add(candidate)
        headers.append(candidate)
    return headers, frozenset(unnamed)


def parse_dataset(
    raw_text: str,
    filename: str = "<memory>",
    preamble_lines: int = 2,
    delimiter: str = ',',
    quote_char: str = '"',
) -> ReferenceDataset:
    """
    Parse reference CSV text.
    
    Args:
        raw_text: Full file contents
        filename: Dataset key (source filename)
        preamble_lines: Non-blank lines skipped before the header row
        delimiter: Field delimiter
        quote_char: Quote character
        
    Returns:
        ReferenceDataset with one record per non-empty data row
        
    Raises:
        FormatError: If fewer than ``preamble_lines + 1`` non-blank lines exist
    """
    if raw_text is None:
        raise FormatError("no content", filename=filename, line_count=0)
    
    lines = [line for line in raw_text.splitlines() if line.strip()]
    minimum = preamble_lines + 1
    if len(lines) < minimum:
        raise FormatError(
            f"expected at least {minimum} non-blank lines, found {len(lines)}",
            filename=filename,
            line_count=len(lines),
        )
    
    preamble = [line.strip() for line in lines[:preamble_lines]]
    headers, unnamed = _dedupe_headers(
        parse_csv_line(lines[preamble_lines], delimiter, quote_char)
    )
    
    records: List[Record] = []
    skipped = 0
    for line in lines[preamble_lines + 1:]:
        values = parse_csv_line(line, delimiter, quote_char)
        if not any(values):
            skipped += 1
            continue
        
        record: Record = {}
        for index, header in enumerate(headers):
            record[header] = values[index] if index < len(values) else ""
        records.append(record)
    
    logger.debug(
        f"Parsed '{filename}': {len(headers)} columns, {len(records)} records"
        f" ({skipped} empty rows skipped)"
    )
    return ReferenceDataset(
        filename=filename,
        headers=headers,
        records=records,
        preamble=preamble,
        unnamed_columns=unnamed,
    )
