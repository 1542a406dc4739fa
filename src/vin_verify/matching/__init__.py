"""
VIN Verify Matching Module
==========================

Identifier column resolution and the multi-dataset matching engine.

Usage:
    from vin_verify.matching import match_identifier
    
    result = match_identifier("AAZH20-1002549", store.as_list())
    if result:
        print(result.kind.value, result.source_file)
"""

from .columns import (
    DEFAULT_COLUMN_INDEX,
    DEFAULT_COLUMN_KEYWORDS,
    resolve_identifier_column,
    missing_column,
    iter_identifiers,
)
from .engine import (
    MatchKind,
    MatchStrategy,
    MatchResult,
    match_identifier,
)

__all__ = [
    "DEFAULT_COLUMN_INDEX",
    "DEFAULT_COLUMN_KEYWORDS",
    "resolve_identifier_column",
    "missing_column",
    "iter_identifiers",
    "MatchKind",
    "MatchStrategy",
    "MatchResult",
    "match_identifier",
]
