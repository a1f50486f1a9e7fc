import tarfile
import pytest
from pathlib import Path

from media_archiver.archive.writer import archive_name, write_archive
from media_archiver.exceptions import ArchiveWriteError
from media_archiver.models import BucketKey


@pytest.fixture
def members(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    paths = []
    for name, data in (("a.jpg", b"aaaa"), ("c.png", b"cccccc")):
        p = src / name
        p.write_bytes(data)
        paths.append(p)
    return paths


def test_writes_uncompressed_tar(tmp_path, members):
    out = tmp_path / "out"
    out.mkdir()

    path = write_archive(out, "foo_2022_10.tar", members)

    assert path == out / "foo_2022_10.tar"
    # gzip/bz2/xz would be rejected by the plain-tar reader
    with tarfile.open(path, mode="r:") as tar:
        assert tar.getnames() == ["a.jpg", "c.png"]
        assert tar.extractfile("c.png").read() == b"cccccc"
    assert list(out.iterdir()) == [path]


def test_refuses_to_overwrite(tmp_path, members):
    existing = tmp_path / "foo_2022.tar"
    existing.write_bytes(b"keep me")

    with pytest.raises(ArchiveWriteError) as exc:
        write_archive(tmp_path, "foo_2022.tar", members)

    assert exc.value.archive_path == existing
    assert existing.read_bytes() == b"keep me"


def test_failed_write_leaves_nothing(tmp_path, members):
    out = tmp_path / "out"
    out.mkdir()
    missing = members + [tmp_path / "src" / "vanished.mp4"]

    with pytest.raises(ArchiveWriteError):
        write_archive(out, "foo_2022_11.tar", missing)

    assert list(out.iterdir()) == []


def test_missing_target_dir_is_archive_error(tmp_path, members):
    with pytest.raises(ArchiveWriteError):
        write_archive(tmp_path / "nope", "foo_2022.tar", members)


def test_archive_name_helper():
    assert archive_name("foo", BucketKey("2022", "10")) == "foo_2022_10.tar"
    assert archive_name("foo", BucketKey("2022")) == "foo_2022.tar"


def test_stale_partial_from_killed_run_is_ignored(tmp_path, members):
    out = tmp_path / "out"
    out.mkdir()
    stale = out / ".foo_2022_11.tar.partial"
    stale.write_bytes(b"half a tar")

    path = write_archive(out, "foo_2022_11.tar", members)

    with tarfile.open(path, mode="r:") as tar:
        assert tar.getnames() == ["a.jpg", "c.png"]
    assert stale.read_bytes() == b"half a tar"
    assert sorted(p.name for p in out.iterdir()) == [".foo_2022_11.tar.partial", "foo_2022_11.tar"]


def test_symlinked_member_stores_file_bytes(tmp_path, members):
    elsewhere = tmp_path / "elsewhere.jpg"
    elsewhere.write_bytes(b"real photo bytes")
    link = members[0].parent / "linked.jpg"
    try:
        link.symlink_to(elsewhere)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported here")

    path = write_archive(tmp_path, "foo_2022.tar", [link])

    with tarfile.open(path, mode="r:") as tar:
        info = tar.getmember("linked.jpg")
        assert info.isfile()
        assert tar.extractfile(info).read() == b"real photo bytes"


def test_written_archive_is_world_readable(tmp_path, members):
    path = write_archive(tmp_path, "foo_2022.tar", members)
    assert path.stat().st_mode & 0o777 == 0o644
