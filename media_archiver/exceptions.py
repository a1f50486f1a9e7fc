"""
Custom exception hierarchy for the media archiver.

Per-file problems derive from FileProcessingError so the scanner can collect
them without catching unrelated errors.
"""
from pathlib import Path


class MediaArchiverError(Exception):
    """Base exception for all media archiver errors."""
    pass


class ConfigurationError(MediaArchiverError):
    """Raised when a required option is missing or invalid."""
    pass


class FileProcessingError(MediaArchiverError):
    """Raised when a single source file cannot be processed."""

    def __init__(self, path: Path, message: str):
        super().__init__(message)
        self.path = path


class UnsupportedExtensionError(FileProcessingError):
    """Raised when a file's extension is neither a video nor a picture type."""

    def __init__(self, path: Path, extension: str):
        super().__init__(path, f"Unhandled extension <{extension}> ({path})")
        self.extension = extension


class FileReadError(FileProcessingError):
    """Raised when a source file cannot be stat'ed or read."""
    pass


class MetadataReadError(MediaArchiverError):
    """Raised when embedded metadata is unreadable or corrupt."""
    pass


class ArchiveWriteError(MediaArchiverError):
    """Raised when an archive cannot be created."""

    def __init__(self, archive_path: Path, message: str):
        super().__init__(message)
        self.archive_path = archive_path
