"""
Tests for identifier column resolution and the matching engine
==============================================================

Run with: pytest tests/test_matching.py -v
"""

import pytest

from vin_verify.core.errors import MissingColumnError
from vin_verify.datasets import ReferenceDataset, parse_dataset
from vin_verify.matching import (
    MatchKind,
    MatchStrategy,
    match_identifier,
    missing_column,
    resolve_identifier_column,
)

from conftest import REFERENCE_HEADERS, build_csv, reference_row


def _simple(filename, values, header="CHASSIS", extra=None):
    """Dataset with a keyword-named identifier column and one extra column."""
    headers = [header, "Note"]
    return ReferenceDataset(
        filename=filename,
        headers=headers,
        records=[{header: v, "Note": f"{filename}#{i}"} for i, v in enumerate(values)],
    )


# =============================================================================
# COLUMN RESOLUTION
# =============================================================================

class TestResolveIdentifierColumn:
    """Tests for resolve_identifier_column."""
    
    def test_fixed_position(self, reference_csv):
        dataset = parse_dataset(reference_csv, filename="ref.csv")
        assert resolve_identifier_column(dataset) == "車台番号"
    
    def test_position_wins_over_keyword(self):
        headers = ["VIN", "B", "C", "D", "E", "F", "G", "H", "Frame", "J"]
        dataset = ReferenceDataset(filename="x.csv", headers=headers)
        assert resolve_identifier_column(dataset) == "Frame"
    
    def test_keyword_fallback_when_too_few_columns(self):
        dataset = ReferenceDataset(filename="x.csv", headers=["No", "Chassis No.", "Owner"])
        assert resolve_identifier_column(dataset) == "Chassis No."
    
    def test_keyword_fallback_first_header_wins(self):
        dataset = ReferenceDataset(filename="x.csv", headers=["VIN code", "車台番号"])
        assert resolve_identifier_column(dataset) == "VIN code"
    
    def test_unnamed_position_falls_back(self):
        text = build_csv(["No", "A", "B", "C", "D", "E", "F", "車台番号", "", "J"], [])
        dataset = parse_dataset(text)
        assert resolve_identifier_column(dataset) == "車台番号"
    
    def test_no_column(self):
        dataset = ReferenceDataset(filename="x.csv", headers=["No", "Owner"])
        assert resolve_identifier_column(dataset) is None
    
    def test_custom_index_and_keywords(self):
        dataset = ReferenceDataset(filename="x.csv", headers=["Serial", "Frame"])
        assert resolve_identifier_column(dataset, column_index=0) == "Serial"
        assert resolve_identifier_column(dataset, column_index=5, keywords=["frame"]) == "Frame"
    
    def test_missing_column_error_value(self):
        dataset = ReferenceDataset(filename="x.csv", headers=["No", "Owner"])
        error = missing_column(dataset)
        assert isinstance(error, MissingColumnError)
        assert error.filename == "x.csv"
        assert error.to_dict()["context"]["headers"] == ["No", "Owner"]


# =============================================================================
# MATCHING
# =============================================================================

class TestMatchIdentifier:
    """Tests for match_identifier."""
    
    def test_exact_match_case_insensitive(self, reference_csv):
        dataset = parse_dataset(reference_csv, filename="ref.csv")
        result = match_identifier("aazh20-1002549", [dataset])
        assert result is not None
        assert result.kind == MatchKind.EXACT
        assert result.is_exact
        assert result.source_file == "ref.csv"
        assert result.candidate == "AAZH20-1002549"
        assert result.record["No"] == "1"
        assert result.column == "車台番号"
        assert result.row_index == 0
    
    def test_whitespace_in_dataset_value_ignored(self, reference_csv):
        dataset = parse_dataset(reference_csv, filename="ref.csv")
        result = match_identifier("ZVW30-5551234", [dataset])
        assert result.kind == MatchKind.EXACT
        assert result.dataset_value == "ZVW30 - 5551234"
    
    def test_partial_candidate_contains_value(self):
        dataset = _simple("d.csv", ["1002549"])
        result = match_identifier("AAZH20-1002549", [dataset])
        assert result.kind == MatchKind.PARTIAL
        assert result.dataset_value == "1002549"
    
    def test_partial_value_contains_candidate(self):
        dataset = _simple("d.csv", ["AAZH20-1002549"])
        result = match_identifier("1002549", [dataset])
        assert result.kind == MatchKind.PARTIAL
    
    def test_no_match(self, reference_csv):
        dataset = parse_dataset(reference_csv, filename="ref.csv")
        assert match_identifier("XYZ99-0000000", [dataset]) is None
    
    def test_falls_through_to_next_dataset(self):
        first = _simple("d1.csv", ["AAA111-1111"])
        second = _simple("d2.csv", ["BBB222-2222"])
        result = match_identifier("BBB222-2222", [first, second])
        assert result.source_file == "d2.csv"
    
    def test_dataset_without_column_skipped(self):
        bare = ReferenceDataset(filename="bare.csv", headers=["No"], records=[{"No": "BBB222-2222"}])
        second = _simple("d2.csv", ["BBB222-2222"])
        result = match_identifier("BBB222-2222", [bare, second])
        assert result.source_file == "d2.csv"
    
    def test_load_order_decides_between_datasets(self):
        first = _simple("d1.csv", ["BBB222-2222"])
        second = _simple("d2.csv", ["BBB222-2222"])
        assert match_identifier("BBB222-2222", [first, second]).source_file == "d1.csv"
        assert match_identifier("BBB222-2222", [second, first]).source_file == "d2.csv"
    
    def test_earlier_partial_row_beats_later_exact_row(self):
        dataset = _simple("d.csv", ["2549", "AAZH20-1002549"])
        result = match_identifier("AAZH20-1002549", [dataset])
        assert result.kind == MatchKind.PARTIAL
        assert result.row_index == 0
    
    def test_exact_first_strategy(self):
        dataset = _simple("d.csv", ["2549", "AAZH20-1002549"])
        result = match_identifier("AAZH20-1002549", [dataset], strategy=MatchStrategy.EXACT_FIRST)
        assert result.kind == MatchKind.EXACT
        assert result.row_index == 1
    
    def test_exact_first_falls_back_to_first_partial(self):
        dataset = _simple("d.csv", ["X", "2549", "1002549"])
        result = match_identifier("AAZH20-1002549", [dataset], strategy="exact_first")
        assert result.kind == MatchKind.PARTIAL
        assert result.row_index == 1
    
    def test_empty_cells_never_match(self):
        dataset = _simple("d.csv", ["", "   ", "AAZH20-1002549"])
        result = match_identifier("AAZH20-1002549", [dataset])
        assert result.row_index == 2
        assert result.kind == MatchKind.EXACT
    
    @pytest.mark.parametrize("candidate", ["", "   ", None])
    def test_empty_candidate(self, candidate):
        dataset = _simple("d.csv", ["AAZH20-1002549"])
        assert match_identifier(candidate, [dataset]) is None
    
    def test_no_datasets(self):
        assert match_identifier("AAZH20-1002549", []) is None
    
    def test_unknown_strategy_rejected(self):
        with pytest.raises(ValueError):
            match_identifier("AAZH20-1002549", [], strategy="fastest")
    
    def test_to_dict(self):
        dataset = _simple("d.csv", ["AAZH20-1002549"])
        data = match_identifier("AAZH20-1002549", [dataset]).to_dict()
        assert data["kind"] == "exact"
        assert data["record"]["Note"] == "d.csv#0"
    
    def test_position_column_used_for_matching(self):
        rows = [reference_row(1, "AAZH20-1002549")]
        rows[0][0] = "HNT32-117910"
        dataset = parse_dataset(build_csv(REFERENCE_HEADERS, rows), filename="ref.csv")
        assert match_identifier("HNT32-117910", [dataset]) is None
