"""
Tests for the verification ledger and status view
=================================================

Run with: pytest tests/test_ledger.py -v
"""

from datetime import datetime, timezone

import pytest

from vin_verify.datasets import ReferenceDataset, parse_dataset
from vin_verify.ledger import VerificationLedger, compute_status, identifier_population
from vin_verify.matching import MatchKind, match_identifier

from conftest import REFERENCE_HEADERS, build_csv, reference_row


FIXED_TIME = datetime(2024, 10, 1, 9, 30, tzinfo=timezone.utc)


def _dataset(filename, values, header="CHASSIS"):
    return ReferenceDataset(
        filename=filename,
        headers=[header],
        records=[{header: v} for v in values],
    )


@pytest.fixture
def ledger():
    return VerificationLedger(clock=lambda: FIXED_TIME)


# =============================================================================
# LEDGER
# =============================================================================

class TestVerificationLedger:
    """Tests for VerificationLedger."""
    
    def test_record_appends_entry(self, ledger):
        match = match_identifier("x1", [_dataset("d.csv", ["X1"])])
        entry = ledger.record(match)
        assert entry.identifier == "X1"
        assert entry.timestamp == FIXED_TIME
        assert entry.source_file == "d.csv"
        assert entry.kind == MatchKind.EXACT
        assert ledger.entries == (entry,)
    
    def test_duplicates_kept(self, ledger):
        match = match_identifier("X1", [_dataset("d.csv", ["X1"])])
        ledger.record(match)
        ledger.record(match)
        assert len(ledger) == 2
        assert ledger.identifiers() == frozenset({"X1"})
    
    def test_partial_match_recorded_under_candidate(self, ledger):
        match = match_identifier("AAZH20-1002549", [_dataset("d.csv", ["1002549"])])
        entry = ledger.record(match)
        assert entry.kind == MatchKind.PARTIAL
        assert entry.identifier == "AAZH20-1002549"
    
    def test_entry_record_is_a_copy(self, ledger):
        dataset = _dataset("d.csv", ["X1"])
        entry = ledger.record(match_identifier("X1", [dataset]))
        dataset.records[0]["CHASSIS"] = "CHANGED"
        assert entry.record["CHASSIS"] == "X1"
    
    def test_entries_tuple_is_read_only(self, ledger):
        assert not hasattr(ledger.entries, "append")
        assert not hasattr(ledger, "remove")
    
    def test_default_clock_is_timezone_aware(self):
        entry = VerificationLedger().record(match_identifier("X1", [_dataset("d.csv", ["X1"])]))
        assert entry.timestamp.tzinfo is not None
    
    def test_to_dict(self, ledger):
        entry = ledger.record(match_identifier("X1", [_dataset("d.csv", ["X1"])]))
        data = entry.to_dict()
        assert data["timestamp"] == "2024-10-01T09:30:00+00:00"
        assert data["kind"] == "exact"


# =============================================================================
# STATUS
# =============================================================================

class TestComputeStatus:
    """Tests for compute_status and identifier_population."""
    
    def test_empty_session(self, ledger):
        status = compute_status([], ledger)
        assert status.total == 0
        assert status.is_complete
        assert status.datasets_searched == 0
    
    def test_set_semantics(self, ledger):
        datasets = [_dataset("d1.csv", ["X1", "X2"]), _dataset("d2.csv", ["X2", "x3"])]
        ledger.record(match_identifier("X1", datasets))
        ledger.record(match_identifier("X1", datasets))
        status = compute_status(datasets, ledger)
        assert status.total == 3
        assert status.verified == frozenset({"X1"})
        assert status.unverified == frozenset({"X2", "X3"})
        assert status.datasets_searched == 2
        assert len(status.verified) + len(status.unverified) == status.total
    
    def test_all_verified(self, ledger):
        datasets = [_dataset("d.csv", ["X1", "X2"])]
        for value in ("X1", "X2"):
            ledger.record(match_identifier(value, datasets))
        status = compute_status(datasets, ledger)
        assert status.is_complete
        assert status.message == "All records verified 2/2 (1 datasets searched)"
    
    def test_partial_match_row_stays_unverified(self, ledger):
        datasets = [_dataset("d.csv", ["1002549"])]
        ledger.record(match_identifier("AAZH20-1002549", datasets))
        status = compute_status(datasets, ledger)
        assert status.unverified == frozenset({"1002549"})
        assert status.verified == frozenset()
    
    def test_replaced_dataset_drops_stale_entries(self, ledger):
        old = _dataset("d.csv", ["X1"])
        ledger.record(match_identifier("X1", [old]))
        new = _dataset("d.csv", ["Y1"])
        status = compute_status([new], ledger)
        assert status.verified == frozenset()
        assert status.unverified == frozenset({"Y1"})
    
    def test_dataset_without_column_reported(self, ledger):
        bare = ReferenceDataset(filename="bare.csv", headers=["No"], records=[{"No": "1"}])
        status = compute_status([bare, _dataset("d.csv", ["X1"])], ledger)
        assert status.datasets_searched == 1
        assert [error.filename for error in status.skipped] == ["bare.csv"]
        assert status.to_dict()["skipped"][0]["error_code"] == "MISSING_COLUMN"
    
    def test_population_skips_empty_cells(self):
        population, searched, skipped = identifier_population([_dataset("d.csv", ["", "x 1", "X1"])])
        assert population == frozenset({"X1"})
        assert searched == 1
        assert skipped == []
    
    def test_uses_same_column_as_matching(self, ledger, reference_csv):
        dataset = parse_dataset(reference_csv, filename="ref.csv")
        status = compute_status([dataset], ledger)
        assert status.unverified == frozenset({"AAZH20-1002549", "HNT32-117910", "ZVW30-5551234"})
    
    def test_unverified_message_lists_sorted_preview(self, ledger):
        values = [f"ID{i:03d}" for i in range(12, 0, -1)]
        status = compute_status([_dataset("d.csv", values)], ledger)
        lines = status.message.splitlines()
        assert lines[0] == "Unverified: 12 of 12"
        assert lines[2] == "- ID001"
        assert "- ID010" in lines
        assert "- ID011" not in lines
        assert "...and 2 more" in lines
        assert status.sample(limit=3) == ["ID001", "ID002", "ID003"]
    
    def test_to_dict_sorted(self, ledger):
        rows = [reference_row(1, "B2"), reference_row(2, "A1")]
        dataset = parse_dataset(build_csv(REFERENCE_HEADERS, rows))
        data = compute_status([dataset], ledger).to_dict()
        assert data["unverified"] == ["A1", "B2"]
        assert data["verified"] == []
