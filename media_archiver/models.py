from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from . import config
from .exceptions import UnsupportedExtensionError


class FileKind(Enum):
    VIDEO = 'video'
    PICTURE = 'picture'

    @classmethod
    def classify(cls, extension: str, path: Optional[Path] = None) -> "FileKind":
        """Maps a lowercase extension to its kind, rejecting anything unknown."""
        kind = config.EXT_TO_KIND.get(extension)
        if kind is None:
            raise UnsupportedExtensionError(path or Path(f"*.{extension}"), extension)
        return cls(kind)


@dataclass(frozen=True)
class EmbeddedMetadata:
    """
    Result of reading a picture's embedded tags.

    Either present (a capture time was found and parsed) or absent. Only the
    capture time drives bucketing; raw_tags is kept for diagnostics.
    """
    capture_time: Optional[datetime] = None
    raw_tags: Dict[str, str] = field(default_factory=dict)

    @property
    def present(self) -> bool:
        return self.capture_time is not None


ABSENT = EmbeddedMetadata()


@dataclass(frozen=True)
class FileRecord:
    """
    A source file with its resolved timestamp.
    """
    path: Path
    ext: str
    kind: FileKind
    timestamp: datetime              # always timezone-aware
    timestamp_source: str            # 'embedded' or 'filesystem'
    metadata: Optional[EmbeddedMetadata] = None

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True, order=True)
class BucketKey:
    year: str
    month: Optional[str] = None

    @classmethod
    def for_timestamp(cls, ts: datetime, by_year_only: bool) -> "BucketKey":
        year = f"{ts.year:04d}"
        if by_year_only:
            return cls(year)
        return cls(year, f"{ts.month:02d}")

    def archive_name(self, prefix: str) -> str:
        if self.month is None:
            return config.YEAR_ARCHIVE_PATTERN.format(prefix=prefix, year=self.year)
        return config.YEAR_MONTH_ARCHIVE_PATTERN.format(prefix=prefix, year=self.year, month=self.month)

    def __str__(self) -> str:
        return self.year if self.month is None else f"{self.year}-{self.month}"


@dataclass(frozen=True)
class ScanFailure:
    path: Path
    error: Exception

    @property
    def reason(self) -> str:
        return str(self.error) or type(self.error).__name__


@dataclass
class ArchivePlan:
    key: BucketKey
    archive_path: Path
    members: List[Path]


@dataclass
class ArchiveResult:
    plan: ArchivePlan
    written: bool
    error: Optional[Exception] = None


@dataclass
class RunSummary:
    files_scanned: int = 0
    scan_failures: List[ScanFailure] = field(default_factory=list)
    archives: List[ArchiveResult] = field(default_factory=list)
    dry_run: bool = False

    @property
    def failed_archives(self) -> List[ArchiveResult]:
        return [a for a in self.archives if a.error is not None]

    @property
    def ok(self) -> bool:
        return not self.scan_failures and not self.failed_archives
