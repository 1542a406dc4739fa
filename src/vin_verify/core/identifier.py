"""
Identifier Utilities - Single Source of Truth
=============================================

Normalization and extraction of document identifiers (chassis numbers,
VINs) from free-form recognized text.

Every identifier that is stored or compared anywhere in the package goes
through ``normalize_identifier`` first.

Author: JRL-VIN Project
"""

import re
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

# Labels that introduce an identifier in recognized text or name an
# identifier column in a reference table (matched case-insensitively).
DEFAULT_LABEL_KEYWORDS: Tuple[str, ...] = ("車台番号", "CHASSIS", "VIN", "IDENTIFIER")

# Token boundary: a capture may not start or end inside a longer alphanumeric run
_NOT_ALNUM_BEFORE = r'(?<![A-Z0-9])'
_NOT_ALNUM_AFTER = r'(?![A-Z0-9])'


# =============================================================================
# NORMALIZATION
# =============================================================================

def normalize_identifier(value: Optional[str]) -> str:
    """
    Normalize an identifier for storage and comparison.
    
    Removes all whitespace (including full-width spaces) and upper-cases
    letters. Idempotent: normalizing a normalized value returns it unchanged.
    
    Examples:
        >>> normalize_identifier(" abc123 - 45 ")
        'ABC123-45'
        >>> normalize_identifier(None)
        ''
    """
    if not value:
        return ""
    return ''.join(str(value).split()).upper()


# =============================================================================
# EXTRACTION CASCADE
# =============================================================================

@dataclass(frozen=True)
class IdentifierMatch:
    """An identifier found in text, with the pattern that produced it."""
    identifier: str
    raw: str
    pattern: str


def _build_patterns(label_keywords: Sequence[str]) -> List[Tuple[str, re.Pattern]]:
    labels = '|'.join(re.escape(k) for k in label_keywords)
    return [
        # Model code + serial: "AAZH20-1002549", "HNT32 -117910"
        ('code_serial', re.compile(
            _NOT_ALNUM_BEFORE + r'([A-Z0-9]{4,6}\s*-?\s*[0-9]{4,10})' + _NOT_ALNUM_AFTER,
            re.IGNORECASE,
        )),
        # Longer generic alphanumeric/dash tokens with at least one digit,
        # e.g. 17-character VINs or "JTDKB20U-123-4567"
        ('generic', re.compile(
            r'(?<![A-Z0-9-])(?=[A-Z0-9-]*[0-9])([A-Z0-9][A-Z0-9-]{9,28}[A-Z0-9])(?![A-Z0-9-])',
            re.IGNORECASE,
        )),
        # Labeled forms: "車台番号: XXXX", "CHASSIS: XXXX"
        ('labeled', re.compile(
            r'(?:' + labels + r')\s*(?:NO\.?|NUMBER)?\s*[:：]?\s*([A-Z0-9-]{6,})',
            re.IGNORECASE,
        )),
    ]


_DEFAULT_PATTERNS = _build_patterns(DEFAULT_LABEL_KEYWORDS)


def find_identifier(
    text: Optional[str],
    label_keywords: Optional[Sequence[str]] = None,
) -> Optional[IdentifierMatch]:
    """
    Run the extraction cascade over recognized text.
    
    Patterns are tried most specific first:
    1. Code + serial forms within fixed length bounds
    2. Longer generic alphanumeric/dash tokens
    3. Labeled forms ("車台番号:", "CHASSIS:", ...)
    
    The first pattern that matches wins; later patterns are not consulted
    even if they would also match.
    
    Args:
        text: Free text produced by a recognition service
        label_keywords: Override the labels used by the labeled pattern
        
    Returns:
        IdentifierMatch with the normalized identifier, or None
    """
    if not text:
        return None
    
    if label_keywords is None:
        patterns = _DEFAULT_PATTERNS
    else:
        patterns = _build_patterns(label_keywords)
    
    for name, pattern in patterns:
        match = pattern.search(text)
        if match:
            raw = match.group(1)
            identifier = normalize_identifier(raw)
            logger.debug(f"Identifier pattern '{name}' matched: {raw!r} -> {identifier}")
            return IdentifierMatch(identifier=identifier, raw=raw, pattern=name)
    
    return None


def extract_identifier(
    text: Optional[str],
    label_keywords: Optional[Sequence[str]] = None,
) -> Optional[str]:
    """
    Extract a normalized identifier from recognized text.
    
    Returns None when nothing recognizable is found. That is an expected
    outcome, not an error.
    
    Examples:
        >>> extract_identifier("車台番号: AAZH20-1002549")
        'AAZH20-1002549'
        >>> extract_identifier("no code here") is None
        True
    """
    found = find_identifier(text, label_keywords=label_keywords)
    return found.identifier if found else None
