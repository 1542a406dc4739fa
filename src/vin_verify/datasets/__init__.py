"""
VIN Verify Datasets Module
==========================

Reference CSV ingestion and the session dataset store.

Usage:
    from vin_verify.datasets import parse_dataset, DatasetStore
    
    store = DatasetStore()
    store.put(parse_dataset(text, filename="fleet.csv"))
"""

from .models import Record, ReferenceDataset
from .parser import parse_csv_line, parse_dataset
from .store import DatasetStore

__all__ = [
    "Record",
    "ReferenceDataset",
    "parse_csv_line",
    "parse_dataset",
    "DatasetStore",
]
