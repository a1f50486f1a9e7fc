import pytest
from datetime import datetime, timezone
from pathlib import Path

import media_archiver.metadata.extract as extract_module
from media_archiver.metadata.extract import MetadataExtractor
from media_archiver.models import ABSENT, EmbeddedMetadata


@pytest.fixture
def source_dir(tmp_path):
    """An empty flat source directory."""
    d = tmp_path / "source"
    d.mkdir()
    return d


@pytest.fixture
def target_dir(tmp_path):
    return tmp_path / "target"


@pytest.fixture
def fake_times(monkeypatch):
    """
    Stubs metadata reads so tests control timestamps by file name.

    Returns (embedded, filesystem): dicts of name -> datetime. Files missing
    from `embedded` have no capture time; files missing from `filesystem`
    use the real stat result.
    """
    embedded = {}
    filesystem = {}
    real_fs = extract_module.filesystem_created

    def fake_read_embedded(self, path, ext):
        dt = embedded.get(Path(path).name)
        if dt is None:
            return ABSENT
        return EmbeddedMetadata(capture_time=dt, raw_tags={"EXIF DateTimeOriginal": dt.strftime("%Y:%m:%d %H:%M:%S")})

    def fake_fs(path):
        dt = filesystem.get(Path(path).name)
        return dt if dt is not None else real_fs(path)

    monkeypatch.setattr(MetadataExtractor, "read_embedded", fake_read_embedded)
    monkeypatch.setattr(extract_module, "filesystem_created", fake_fs)
    return embedded, filesystem


@pytest.fixture
def scenario(source_dir, fake_times):
    """a.jpg (embedded 2022-10-05), b.mp4 (created 2022-11-02), c.png (created 2022-10-20)."""
    embedded, filesystem = fake_times
    for name in ("a.jpg", "b.mp4", "c.png"):
        (source_dir / name).write_bytes(name.encode() * 10)

    embedded["a.jpg"] = datetime(2022, 10, 5, 12, 0, 0, tzinfo=timezone.utc)
    filesystem["b.mp4"] = datetime(2022, 11, 2, 9, 30).astimezone()
    filesystem["c.png"] = datetime(2022, 10, 20, 18, 45).astimezone()
    return source_dir
