# File: tests/test_archive.py
import io
import zipfile

import pytest

from booth_dl.exceptions import ArchiveBuildError
from booth_dl.storage.archive import ArchiveAssembler


def _open(data: bytes) -> zipfile.ZipFile:
    return zipfile.ZipFile(io.BytesIO(data))


def test_entries_are_stored_uncompressed(make_success):
    payload = b"A" * 10_000
    data = ArchiveAssembler().assemble(
        [make_success("one.zip", payload), make_success("two.png", b"\x89PNG")]
    )

    with _open(data) as zf:
        assert zf.namelist() == ["one.zip", "two.png"]
        assert all(i.compress_type == zipfile.ZIP_STORED for i in zf.infolist())
        assert zf.getinfo("one.zip").compress_size == len(payload)
        assert zf.read("one.zip") == payload
        assert zf.read("two.png") == b"\x89PNG"
        assert zf.testzip() is None


def test_empty_archive_is_valid():
    data = ArchiveAssembler().assemble([])
    with _open(data) as zf:
        assert zf.namelist() == []


def test_duplicate_names_last_write_wins(make_success):
    data = ArchiveAssembler().assemble(
        [
            make_success("same.zip", b"first", locator="https://x/1"),
            make_success("other.zip", b"other"),
            make_success("same.zip", b"second", locator="https://x/2"),
        ]
    )
    with _open(data) as zf:
        assert zf.namelist() == ["same.zip", "other.zip"]
        assert zf.read("same.zip") == b"second"


def test_unicode_names_round_trip(make_success):
    data = ArchiveAssembler().assemble([make_success("モデル.zip", b"m")])
    with _open(data) as zf:
        assert zf.namelist() == ["モデル.zip"]


def test_write_streams_into_file(tmp_path, make_success):
    path = tmp_path / "out.zip"
    with open(path, "wb") as f:
        count = ArchiveAssembler().write([make_success("a.bin", b"abc")], f)
    assert count == 1
    with zipfile.ZipFile(path) as zf:
        assert zf.read("a.bin") == b"abc"


class _BrokenFile(io.RawIOBase):
    def writable(self):
        return True

    def write(self, b):
        raise OSError("disk full")


def test_serialization_error_reports_success_count(make_success):
    successes = [make_success("a.bin"), make_success("b.bin")]
    with pytest.raises(ArchiveBuildError) as excinfo:
        ArchiveAssembler().write(successes, _BrokenFile())
    assert excinfo.value.success_count == 2
    assert "disk full" in str(excinfo.value)


class _ExhaustedFile(io.RawIOBase):
    def writable(self):
        return True

    def write(self, b):
        raise MemoryError()


def test_memory_error_is_wrapped_with_success_count(make_success):
    successes = [make_success("a.bin"), make_success("b.bin"), make_success("c.bin")]
    with pytest.raises(ArchiveBuildError) as excinfo:
        ArchiveAssembler().write(successes, _ExhaustedFile())
    assert excinfo.value.success_count == 3
    assert isinstance(excinfo.value.__cause__, MemoryError)


@pytest.mark.parametrize(
    ("filename", "stored"),
    [
        ("../../evil.sh", "evil.sh"),
        ("/etc/passwd", "passwd"),
        ("..\\..\\boot.ini", "boot.ini"),
        ("dir/", "file.bin"),
        ("..", "file.bin"),
    ],
)
def test_entry_names_drop_directory_components(make_success, filename, stored):
    data = ArchiveAssembler().assemble([make_success(filename, b"x")])
    with _open(data) as zf:
        assert zf.namelist() == [stored]
