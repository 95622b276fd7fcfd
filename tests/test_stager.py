"""Tests for the validation/promotion engine without the HTTP layer."""

import asyncio
import os

import pytest

from app.core.errors import UploadIOError, UploadValidationError
from app.models.file_meta import FileDescriptor, FormEntry
from app.models.upload_options import UploadOptions
from app.services import stager as stager_module
from app.services.stager import UploadStager, add_to_result, leaf_name

from conftest import list_files


def make_entry(staging_dir, field_name, filename, content):
    path = staging_dir / f"scratch_{len(list_files(staging_dir))}"
    path.write_bytes(content)
    return FormEntry(field_name, FileDescriptor(
        filename=filename,
        size=len(content),
        content_type="application/octet-stream",
        tempfile=str(path),
    ))


def test_leaf_name_strips_directories():
    assert leaf_name("../../etc/passwd") == "passwd"
    assert leaf_name("C:\\Users\\me\\report.pdf") == "report.pdf"
    assert leaf_name("..") == "file"
    assert leaf_name("photo.png") == "photo.png"


def test_add_to_result_shapes():
    result = {}
    first = FileDescriptor(filename="1.txt", size=1)
    second = FileDescriptor(filename="2.txt", size=1)
    third = FileDescriptor(filename="3.txt", size=1)

    add_to_result(result, "f", first)
    assert result["f"] is first
    add_to_result(result, "f", second)
    assert result["f"] == [first, second]
    add_to_result(result, "f", third)
    assert result["f"] == [first, second, third]


async def test_stage_promotes_in_decode_order(workdir, staging_dir):
    stager = UploadStager(UploadOptions.merge(path="store"))
    entries = [
        make_entry(staging_dir, "a", "one.bin", b"1"),
        FormEntry("note", "text value"),
        make_entry(staging_dir, "a", "two.bin", b"22"),
    ]

    result = await stager.stage(entries)

    assert [d.filename for d in result["a"]] == ["one.bin", "two.bin"]
    assert "note" not in result
    for descriptor in result["a"]:
        assert descriptor.tempfile is None
        assert descriptor.uri.startswith(str(workdir / "store"))
        assert os.path.getsize(descriptor.uri) == descriptor.size
    assert list_files(staging_dir) == []


async def test_validation_failure_discards_every_scratch_file(workdir, staging_dir):
    stager = UploadStager(UploadOptions.merge(extensions=["txt"], max_size_bytes=5))
    entries = [
        make_entry(staging_dir, "a", "ok.txt", b"abc"),
        make_entry(staging_dir, "b", "bad.exe", b"abc"),
    ]

    with pytest.raises(UploadValidationError) as exc_info:
        await stager.stage(entries)

    violations = exc_info.value.violations
    assert any("bad.exe" in v for v in violations)
    assert any("Maximum total upload size exceeded, size: 6 bytes" in v for v in violations)
    assert list_files(staging_dir) == []


async def test_promotion_failure_rolls_back_request(workdir, staging_dir, monkeypatch):
    stager = UploadStager(UploadOptions.merge())
    entries = [
        make_entry(staging_dir, "a", "first.txt", b"first"),
        make_entry(staging_dir, "a", "second.txt", b"second"),
    ]
    real_promote = stager_module.promote
    calls = []

    def flaky_promote(src, dest):
        calls.append(dest)
        if len(calls) == 2:
            raise OSError("disk full")
        real_promote(src, dest)

    monkeypatch.setattr(stager_module, "promote", flaky_promote)

    with pytest.raises(UploadIOError):
        await stager.stage(entries)

    assert not os.path.exists(calls[0])
    assert list_files(staging_dir) == []
    assert list_files(workdir / "uploads") == []
    assert os.listdir(workdir / "uploads") == []


def test_holding_lane_is_created_on_construction(workdir):
    UploadStager(UploadOptions.merge(save_file=False), temp_upload_dir="lane")
    assert (workdir / "lane").is_dir()


async def test_failed_first_promotion_leaves_no_empty_directories(workdir, staging_dir, monkeypatch):
    stager = UploadStager(UploadOptions.merge())
    entries = [make_entry(staging_dir, "a", "only.txt", b"data")]

    def failing_promote(src, dest):
        raise OSError("read-only file system")

    monkeypatch.setattr(stager_module, "promote", failing_promote)

    with pytest.raises(UploadIOError):
        await stager.stage(entries)

    assert os.listdir(workdir / "uploads") == []
    assert list_files(staging_dir) == []


async def test_concurrent_requests_with_same_filename_do_not_collide(workdir, staging_dir):
    stager = UploadStager(UploadOptions.merge())
    first = [make_entry(staging_dir, "doc", "same.txt", b"first request")]
    second = [make_entry(staging_dir, "doc", "same.txt", b"second request")]

    results = await asyncio.gather(stager.stage(first), stager.stage(second))

    uris = [result["doc"].uri for result in results]
    assert uris[0] != uris[1]
    with open(uris[0], "rb") as f:
        assert f.read() == b"first request"
    with open(uris[1], "rb") as f:
        assert f.read() == b"second request"
