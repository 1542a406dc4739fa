"""
VIN Verify Ledger Module
========================

Append-only verification ledger and the derived status view.
"""

from .ledger import VerificationRecord, VerificationLedger
from .status import VerificationStatus, identifier_population, compute_status

__all__ = [
    "VerificationRecord",
    "VerificationLedger",
    "VerificationStatus",
    "identifier_population",
    "compute_status",
]
