"""
VIN Verify Core Module
======================

Identifier normalization/extraction and the error taxonomy.
"""

from .errors import (
    VerificationError,
    FormatError,
    MissingColumnError,
    ServiceError,
)
from .identifier import (
    DEFAULT_LABEL_KEYWORDS,
    IdentifierMatch,
    normalize_identifier,
    find_identifier,
    extract_identifier,
)

__all__ = [
    # Errors
    "VerificationError",
    "FormatError",
    "MissingColumnError",
    "ServiceError",
    # Identifiers
    "DEFAULT_LABEL_KEYWORDS",
    "IdentifierMatch",
    "normalize_identifier",
    "find_identifier",
    "extract_identifier",
]
