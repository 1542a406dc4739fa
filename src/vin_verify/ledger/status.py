"""
Verified/unverified status view derived from datasets and the ledger.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Sequence, Set

from ..core.errors import MissingColumnError
from ..datasets.models import ReferenceDataset
from ..matching.columns import (
    DEFAULT_COLUMN_INDEX,
    DEFAULT_COLUMN_KEYWORDS,
    iter_identifiers,
    missing_column,
    resolve_identifier_column,
)
from .ledger import VerificationLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationStatus:
    """Set-valued verification status."""
    verified: FrozenSet[str]
    unverified: FrozenSet[str]
    total: int
    datasets_searched: int = 0
    skipped: List[MissingColumnError] = field(default_factory=list)
    
    @property
    def is_complete(self) -> bool:
        return not self.unverified
    
    def sample(self, limit: int = 10) -> List[str]:
        """Sorted preview of unverified identifiers."""
        return sorted(self.unverified)[:limit]
    
    @property
    def message(self) -> str:
        if self.is_complete:
            return (
                f"All records verified {len(self.verified)}/{self.total}"
                f" ({self.datasets_searched} datasets searched)"
            )
        lines = [f"Unverified: {len(self.unverified)} of {self.total}", ""]
        preview = self.sample()
        lines.extend(f"- {identifier}" for identifier in preview)
        if len(self.unverified) > len(preview):
            lines.append(f"...and {len(self.unverified) - len(preview)} more")
        lines.append("")
        lines.append(f"({self.datasets_searched} datasets searched)")
        return "\n".join(lines)
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'total': self.total,
            'verified': sorted(self.verified),
            'unverified': sorted(self.unverified),
            'datasets_searched': self.datasets_searched,
            'skipped': [error.to_dict() for error in self.skipped],
        }


def identifier_population(
    datasets: Iterable[ReferenceDataset],
    column_index: int = DEFAULT_COLUMN_INDEX,
    keywords: Sequence[str] = DEFAULT_COLUMN_KEYWORDS,
):
    """
    Union of normalized identifiers across datasets.
    
    Returns:
        (population, searched_count, skipped) where skipped lists the
        datasets that have no identifier column
    """
    population: Set[str] = set()
    skipped: List[MissingColumnError] = []
    searched = 0
    for dataset in datasets:
        column = resolve_identifier_column(dataset, column_index, keywords)
        if column is None:
            logger.warning(f"No identifier column in '{dataset.filename}', excluded from status")
            skipped.append(missing_column(dataset))
            continue
        searched += 1
        population.update(value for _, _, value in iter_identifiers(dataset, column))
    return frozenset(population), searched, skipped


def compute_status(
    datasets: Iterable[ReferenceDataset],
    ledger: VerificationLedger,
    column_index: int = DEFAULT_COLUMN_INDEX,
    keywords: Sequence[str] = DEFAULT_COLUMN_KEYWORDS,
) -> VerificationStatus:
    """
    Compute verified and unverified identifier sets.
    
    ``verified`` is the ledger's identifiers intersected with the current
    population, so entries for identifiers that no longer exist in any
    dataset do not count. ``unverified`` is population minus verified.
    """
    population, searched, skipped = identifier_population(datasets, column_index, keywords)
    verified = ledger.identifiers() & population
    return VerificationStatus(
        verified=verified,
        unverified=population - verified,
        total=len(population),
        datasets_searched=searched,
        skipped=skipped,
    )
