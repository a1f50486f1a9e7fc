import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
from concurrent.futures import ThreadPoolExecutor, as_completed

from tqdm import tqdm

from .. import config
from ..exceptions import FileProcessingError, FileReadError
from ..models import FileRecord, ScanFailure
from ..metadata.extract import MetadataExtractor
from ..organization.buckets import BucketAccumulator


@dataclass
class ScanResult:
    records: List[FileRecord] = field(default_factory=list)
    failures: List[ScanFailure] = field(default_factory=list)


class DirectoryScanner:
    def __init__(self, extractor: Optional[MetadataExtractor] = None):
        self.metadata = extractor or MetadataExtractor()

    def scan(self,
             root: Path,
             accumulator: BucketAccumulator,
             max_workers: int = config.DEFAULT_WORKERS,
             show_progress: bool = True) -> ScanResult:
        """
        Resolves every file directly inside root and adds it to accumulator.

        All files are submitted at once; the call returns only after every
        task has settled. Per-file failures are collected, not raised.

        Args:
            max_workers: Number of threads reading metadata concurrently
        """
        names = self.list_files(root)
        result = ScanResult()
        if not names:
            logging.info(f"No files found in {root}")
            return result

        logging.info(f"Scanning {len(names)} files in {root} ({max_workers} workers)")

        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
            future_to_name = {
                executor.submit(self._process_single_file, root, name, accumulator): name
                for name in names
            }
            for future in tqdm(as_completed(future_to_name), total=len(future_to_name),
                               desc="Scanning", disable=not show_progress):
                name = future_to_name[future]
                try:
                    result.records.append(future.result())
                except FileProcessingError as e:
                    logging.debug(f"Failed to scan {name}: {e}")
                    result.failures.append(ScanFailure(e.path, e))
                except Exception as e:
                    logging.error(f"Failed to scan {name}: {e}")
                    result.failures.append(ScanFailure((Path(root) / name).absolute(), e))

        return result

    def list_files(self, root: Path) -> List[str]:
        """Names of regular files directly inside root (non-recursive), sorted."""
        try:
            with os.scandir(root) as it:
                entries = list(it)
        except OSError as e:
            raise FileReadError(Path(root), f"Cannot list {root}: {e}") from e

        return sorted(e.name for e in entries if e.is_file(follow_symlinks=True))

    def _process_single_file(self,
                             root: Path,
                             name: str,
                             accumulator: BucketAccumulator) -> FileRecord:
        record = self.metadata.resolve(root, name)
        accumulator.add(record)
        return record
