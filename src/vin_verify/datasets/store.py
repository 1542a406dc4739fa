"""
Session dataset store.
"""

import logging
from typing import Dict, Iterator, List, Optional

from .models import ReferenceDataset

logger = logging.getLogger(__name__)


class DatasetStore:
    """
    Loaded reference datasets in load order, keyed by filename.
    
    Re-adding a filename replaces the old dataset at its original position;
    rows are never merged.
    """
    
    def __init__(self, datasets: Optional[List[ReferenceDataset]] = None):
        self._datasets: Dict[str, ReferenceDataset] = {}
        for dataset in datasets or []:
            self.put(dataset)
    
    def put(self, dataset: ReferenceDataset) -> bool:
        """
        Add or replace a dataset.
        
        Returns:
            True if an existing dataset with the same filename was replaced
        """
        replaced = dataset.filename in self._datasets
        self._datasets[dataset.filename] = dataset
        if replaced:
            logger.info(f"Replaced dataset '{dataset.filename}' ({dataset.record_count} records)")
        else:
            logger.info(f"Added dataset '{dataset.filename}' ({dataset.record_count} records)")
        return replaced
    
    def get(self, filename: str) -> Optional[ReferenceDataset]:
        return self._datasets.get(filename)
    
    def remove(self, filename: str) -> Optional[ReferenceDataset]:
        return self._datasets.pop(filename, None)
    
    @property
    def filenames(self) -> List[str]:
        return list(self._datasets)
    
    @property
    def total_records(self) -> int:
        return sum(d.record_count for d in self._datasets.values())
    
    def as_list(self) -> List[ReferenceDataset]:
        """Snapshot of the datasets in load order."""
        return list(self._datasets.values())
    
    def __iter__(self) -> Iterator[ReferenceDataset]:
        return iter(list(self._datasets.values()))
    
    def __len__(self) -> int:
        return len(self._datasets)
    
    def __contains__(self, filename: object) -> bool:
        return filename in self._datasets
