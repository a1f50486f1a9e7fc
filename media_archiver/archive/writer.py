import os
import logging
import tarfile
import tempfile
from pathlib import Path
from typing import Iterable, Optional, Union

from .. import config
from ..exceptions import ArchiveWriteError
from ..models import BucketKey


def archive_name(prefix: str, key: BucketKey) -> str:
    return key.archive_name(prefix)


def write_archive(target_dir: Union[str, Path],
                  name: str,
                  member_paths: Iterable[Union[str, Path]]) -> Path:
    """
    Creates an uncompressed tar at target_dir/name holding member_paths.

    Members are stored under their file name; symlinks are followed so the
    archive always holds the file's bytes. The tar is built in a hidden,
    uniquely named partial file and renamed into place once closed, so a
    failed write never leaves a truncated archive behind. An existing archive
    is never replaced.
    """
    target_dir = Path(target_dir)
    final_path = target_dir / name

    if final_path.exists():
        raise ArchiveWriteError(final_path, f"Archive already exists: {final_path}")

    partial_path: Optional[Path] = None
    try:
        fd, tmp_name = tempfile.mkstemp(dir=target_dir, prefix=f".{name}.",
                                        suffix=config.PARTIAL_ARCHIVE_SUFFIX)
        partial_path = Path(tmp_name)
        with os.fdopen(fd, "wb") as fh, tarfile.open(fileobj=fh, mode="w", dereference=True) as tar:
            for member in member_paths:
                member = Path(member)
                tar.add(str(member), arcname=member.name, recursive=False)
        os.chmod(partial_path, config.ARCHIVE_FILE_MODE)
        os.replace(partial_path, final_path)
    except (OSError, tarfile.TarError) as e:
        if partial_path is not None:
            _discard(partial_path)
        raise ArchiveWriteError(final_path, f"Failed to write {final_path}: {e}") from e

    logging.debug(f"Wrote {final_path}")
    return final_path


def _discard(partial_path: Path):
    try:
        partial_path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logging.warning(f"Could not remove partial archive {partial_path}: {e}")
