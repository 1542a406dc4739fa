"""
Verification Ledger
===================

Append-only log of confirmed matches for one session.

Duplicate confirmations are kept as separate entries; status computations
work on identifier sets, so duplicates never inflate the verified count.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, FrozenSet, Iterator, List, Optional, Tuple

from ..datasets.models import Record
from ..matching.engine import MatchKind, MatchResult

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class VerificationRecord:
    """One confirmed match. Never mutated once created."""
    identifier: str
    timestamp: datetime
    record: Record
    source_file: str
    kind: MatchKind = MatchKind.EXACT
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'identifier': self.identifier,
            'timestamp': self.timestamp.isoformat(),
            'source_file': self.source_file,
            'kind': self.kind.value,
            'record': dict(self.record),
        }


class VerificationLedger:
    """
    Append-only verification log.
    
    There is no remove or update operation.
    """
    
    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._entries: List[VerificationRecord] = []
        self._clock = clock or _utcnow
    
    def record(self, match: MatchResult) -> VerificationRecord:
        """
        Append an entry for a match result.
        
        The entry's identifier is the candidate that was searched for, so a
        partial match is logged under the extracted value, not the row value.
        """
        entry = VerificationRecord(
            identifier=match.candidate,
            timestamp=self._clock(),
            record=dict(match.record),
            source_file=match.source_file,
            kind=match.kind,
        )
        self._entries.append(entry)
        logger.info(f"Recorded verification of {entry.identifier} from '{entry.source_file}'")
        return entry
    
    @property
    def entries(self) -> Tuple[VerificationRecord, ...]:
        return tuple(self._entries)
    
    def identifiers(self) -> FrozenSet[str]:
        """Distinct identifiers present in the ledger."""
        return frozenset(entry.identifier for entry in self._entries)
    
    def __len__(self) -> int:
        return len(self._entries)
    
    def __iter__(self) -> Iterator[VerificationRecord]:
        return iter(tuple(self._entries))
