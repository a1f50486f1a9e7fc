import threading
from collections import defaultdict
from typing import Dict, Iterable, List, Tuple

from ..models import BucketKey, FileRecord


class BucketAccumulator:
    """
    Collects FileRecords into buckets while extraction tasks run concurrently.

    A single lock guards the mapping and is held for one insertion only.
    Members keep their insertion order.
    """

    def __init__(self, by_year_only: bool = False):
        self.by_year_only = by_year_only
        self._buckets: Dict[BucketKey, List[FileRecord]] = {}
        self._lock = threading.Lock()

    def add(self, record: FileRecord) -> BucketKey:
        key = BucketKey.for_timestamp(record.timestamp, self.by_year_only)
        with self._lock:
            self._buckets.setdefault(key, []).append(record)
        return key

    def __len__(self) -> int:
        with self._lock:
            return sum(len(members) for members in self._buckets.values())

    def buckets(self) -> List[Tuple[BucketKey, List[FileRecord]]]:
        """Snapshot of (key, members), sorted by key."""
        with self._lock:
            return [(key, list(self._buckets[key])) for key in sorted(self._buckets)]

    def as_nested(self):
        """Same shape as group(): year -> records, or year -> month -> records."""
        nested = {} if self.by_year_only else defaultdict(dict)
        for key, members in self.buckets():
            if self.by_year_only:
                nested[key.year] = members
            else:
                nested[key.year][key.month] = members
        return dict(nested)


def group_by_year(records: Iterable[FileRecord]) -> Dict[str, List[FileRecord]]:
    years: Dict[str, List[FileRecord]] = {}
    for record in records:
        key = BucketKey.for_timestamp(record.timestamp, by_year_only=True)
        years.setdefault(key.year, []).append(record)
    return years


def group_by_year_month(records: Iterable[FileRecord]) -> Dict[str, Dict[str, List[FileRecord]]]:
    years: Dict[str, Dict[str, List[FileRecord]]] = {}
    for record in records:
        key = BucketKey.for_timestamp(record.timestamp, by_year_only=False)
        years.setdefault(key.year, {}).setdefault(key.month, []).append(record)
    return years


def group(records: Iterable[FileRecord], by_year_only: bool):
    """
    Partitions records by the wall-clock year (and month) of their resolved
    timestamp. Every record lands in exactly one bucket; no I/O happens here.
    """
    if by_year_only:
        return group_by_year(records)
    return group_by_year_month(records)

