"""
Reference dataset model.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional

# One data row: header name -> cell value
Record = Dict[str, str]


@dataclass
class ReferenceDataset:
    """
    One ingested reference table, keyed by its source filename.
    
    ``headers`` keeps the original column order; the identifier column
    fallback depends on position. Header names are unique (the parser
    de-duplicates them).
    """
    filename: str
    headers: List[str]
    records: List[Record] = field(default_factory=list)
    preamble: List[str] = field(default_factory=list)
    # Column positions whose header cell was blank in the source
    unnamed_columns: FrozenSet[int] = frozenset()
    
    @property
    def record_count(self) -> int:
        return len(self.records)
    
    def header_at(self, index: int) -> Optional[str]:
        """Header text at a column position, or None if out of range."""
        if 0 <= index < len(self.headers):
            return self.headers[index]
        return None
    
    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'filename': self.filename,
            'headers': list(self.headers),
            'record_count': len(self.records),
            'preamble': list(self.preamble),
        }
