import logging
import re
from pathlib import Path
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Union

import exifread
from PIL import Image

from .. import config
from ..exceptions import FileReadError, MetadataReadError
from ..models import ABSENT, EmbeddedMetadata, FileKind, FileRecord

_OFFSET_RE = re.compile(r'^([+-])(\d{2}):?(\d{2})$')


class MetadataExtractor:
    """
    Resolves the canonical timestamp of a media file.

    Strategies for pictures:
      - 'exifread' (fast, Python-native, handles HEIC).
      - Pillow's EXIF reader as a fallback for JPEG/PNG files exifread
        could not make sense of.
    Videos, and pictures without a usable capture time, use the filesystem
    creation time.
    """

    def resolve(self, base_path: Union[str, Path], filename: str) -> FileRecord:
        """
        Builds the FileRecord for base_path/filename.

        Raises:
            UnsupportedExtensionError: extension is not a known video/picture type.
            FileReadError: the file cannot be stat'ed.
        """
        full_path = (Path(base_path) / filename).absolute()
        ext = extension_of(filename)
        kind = FileKind.classify(ext, full_path)

        metadata = None
        if kind is FileKind.PICTURE:
            metadata = self.read_embedded(full_path, ext)

        if metadata is not None and metadata.present:
            timestamp = metadata.capture_time
            source = 'embedded'
        else:
            timestamp = filesystem_created(full_path)
            source = 'filesystem'

        logging.debug(f"Resolved {full_path.name}: {timestamp.isoformat()} ({source})")
        return FileRecord(
            path=full_path,
            ext=ext,
            kind=kind,
            timestamp=timestamp,
            timestamp_source=source,
            metadata=metadata,
        )

    def read_embedded(self, path: Path, ext: str) -> EmbeddedMetadata:
        """
        Tries each reader in turn. Unreadable or corrupt metadata is never
        fatal, it simply counts as absent.
        """
        strategies: List[Callable[[Path], EmbeddedMetadata]] = [self._read_exifread]
        if ext not in config.PIL_SKIP_EXTS:
            strategies.append(self._read_pillow)

        fallback = ABSENT
        for strategy in strategies:
            try:
                meta = strategy(path)
            except MetadataReadError as e:
                logging.debug(f"{e}; treating as absent")
                continue
            if meta.present:
                return meta
            if meta.raw_tags and not fallback.raw_tags:
                fallback = meta
        return fallback

    # --- Internal Extraction Helpers ---

    def _read_exifread(self, path: Path) -> EmbeddedMetadata:
        try:
            with path.open('rb') as f:
                # details=False skips makernotes and thumbnails
                tags = exifread.process_file(f, details=False)
        except Exception as e:
            raise MetadataReadError(f"ExifRead failed for {path}: {e}") from e

        raw = {name: str(tags[name]).strip() for name in
               (config.CAPTURE_TAG, config.SUBSEC_TAG, config.OFFSET_TAG) if name in tags}
        capture = parse_capture_time(
            raw.get(config.CAPTURE_TAG),
            subsec=raw.get(config.SUBSEC_TAG),
            offset=raw.get(config.OFFSET_TAG),
        )
        return EmbeddedMetadata(capture_time=capture, raw_tags=raw)

    def _read_pillow(self, path: Path) -> EmbeddedMetadata:
        try:
            with Image.open(path) as img:
                exif = img.getexif()
                ifd = exif.get_ifd(config.PIL_EXIF_IFD)
        except Exception as e:
            raise MetadataReadError(f"Pillow failed for {path}: {e}") from e

        raw = {}
        for tag_id, name in ((config.PIL_CAPTURE_TAG, config.CAPTURE_TAG),
                             (config.PIL_SUBSEC_TAG, config.SUBSEC_TAG),
                             (config.PIL_OFFSET_TAG, config.OFFSET_TAG)):
            value = ifd.get(tag_id, exif.get(tag_id))
            if value is not None:
                raw[name] = str(value).strip()

        capture = parse_capture_time(
            raw.get(config.CAPTURE_TAG),
            subsec=raw.get(config.SUBSEC_TAG),
            offset=raw.get(config.OFFSET_TAG),
        )
        return EmbeddedMetadata(capture_time=capture, raw_tags=raw)


def extension_of(filename: str) -> str:
    """Substring after the last '.', lowercased. A name without a dot is its own extension."""
    return filename.rsplit('.', 1)[-1].lower()


def parse_capture_time(value: Optional[str],
                       subsec: Optional[str] = None,
                       offset: Optional[str] = None) -> Optional[datetime]:
    """
    Parses an embedded capture time into an aware datetime.

    Accepts the EXIF form "YYYY:MM:DD HH:MM:SS" and ISO "YYYY-MM-DDTHH:MM:SS.sss"
    (optionally suffixed with 'Z'). Naive values are UTC unless an explicit
    offset tag is supplied. Returns None for anything unparseable.
    """
    if value is None:
        return None
    clean = value.strip().rstrip('\x00').strip()
    if not clean:
        return None

    tz = _parse_offset(offset) if offset else None
    if clean.endswith('Z'):
        clean = clean[:-1]
        tz = timezone.utc

    # EXIF uses ':' in the date part
    if re.match(r'^\d{4}:\d{2}:\d{2}', clean):
        clean = clean.replace(':', '-', 2)

    try:
        dt = datetime.fromisoformat(clean)
    except ValueError:
        return None

    if subsec and dt.microsecond == 0:
        digits = ''.join(c for c in subsec if c.isdigit())
        if digits:
            dt = dt.replace(microsecond=int(digits[:6].ljust(6, '0')))

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz or timezone.utc)
    return dt


def _parse_offset(offset: str) -> Optional[timezone]:
    m = _OFFSET_RE.match(offset.strip())
    if not m:
        return None
    sign, hours, minutes = m.groups()
    delta = timedelta(hours=int(hours), minutes=int(minutes))
    return timezone(-delta if sign == '-' else delta)


def filesystem_created(path: Path) -> datetime:
    """
    Creation time in the local timezone. Platforms without a birth time
    (most Linux filesystems through os.stat) fall back to the modification time.
    """
    try:
        st = path.stat()
    except OSError as e:
        raise FileReadError(path, f"Cannot stat {path}: {e}") from e
    ts = getattr(st, 'st_birthtime', None) or st.st_mtime
    return datetime.fromtimestamp(ts).astimezone()
