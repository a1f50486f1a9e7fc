import logging
from pathlib import Path
from typing import List
from concurrent.futures import ThreadPoolExecutor

from .archive.writer import archive_name, write_archive
from .exceptions import ArchiveWriteError
from .models import ArchivePlan, ArchiveResult, RunSummary
from .organization.buckets import BucketAccumulator
from .scanning.filesystem import DirectoryScanner
from . import config


class MediaArchiverApp:
    def __init__(self, scanner: DirectoryScanner = None):
        self.scanner = scanner or DirectoryScanner()

    def run(self,
            source_dir: Path,
            target_dir: Path,
            prefix: str,
            by_year_only: bool = False,
            dry_run: bool = False,
            max_workers: int = config.DEFAULT_WORKERS) -> RunSummary:
        """
        Executes the archiving pipeline.
        1. Scan & Resolve timestamps (concurrently, into one locked accumulator)
        2. Abort if any file could not be resolved
        3. Plan one archive per bucket
        4. Write archives (concurrently, one file per bucket)
        """
        summary = RunSummary(dry_run=dry_run)

        # --- Step 1: Scanning ---
        accumulator = BucketAccumulator(by_year_only=by_year_only)
        result = self.scanner.scan(source_dir, accumulator, max_workers=max_workers)
        summary.files_scanned = len(result.records) + len(result.failures)

        # --- Step 2: Failure Policy ---
        # One unresolvable file aborts the run before anything is written
        if result.failures:
            summary.scan_failures = sorted(result.failures, key=lambda f: str(f.path))
            logging.error(f"{len(result.failures)} of {summary.files_scanned} files could not be processed:")
            for failure in summary.scan_failures:
                logging.error(f"  {failure.path}: {failure.reason}")
            logging.error("No archives were written.")
            return summary

        # --- Step 3: Planning ---
        plans = self.plan(accumulator, target_dir, prefix)
        logging.info(f"Resolved {len(result.records)} files into {len(plans)} archives.")

        # --- Step 4: Writing ---
        if dry_run:
            for plan in plans:
                logging.info(f"[DRY RUN] Would create {plan.archive_path} ({len(plan.members)} files)")
                summary.archives.append(ArchiveResult(plan, written=False))
            return summary

        if plans:
            target_dir.mkdir(parents=True, exist_ok=True)
        summary.archives = self.write_all(plans, max_workers)

        for failed in summary.failed_archives:
            logging.error(f"Failed to create {failed.plan.archive_path}: {failed.error}")
        return summary

    def plan(self, accumulator: BucketAccumulator, target_dir: Path, prefix: str) -> List[ArchivePlan]:
        return [
            ArchivePlan(
                key=key,
                archive_path=target_dir / archive_name(prefix, key),
                members=[record.path for record in members],
            )
            for key, members in accumulator.buckets()
        ]

    def write_all(self, plans: List[ArchivePlan], max_workers: int) -> List[ArchiveResult]:
        """Writes each planned archive; one failure does not stop the others."""
        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
            return list(executor.map(self._write_one, plans))

    def _write_one(self, plan: ArchivePlan) -> ArchiveResult:
        logging.info(f"Creating {plan.archive_path}")
        try:
            write_archive(plan.archive_path.parent, plan.archive_path.name, plan.members)
        except ArchiveWriteError as e:
            return ArchiveResult(plan, written=False, error=e)
        return ArchiveResult(plan, written=True)
