"""End-to-end tests for the multipart upload stage."""

import os
import re

from conftest import list_files

UPLOAD_ID_PATTERN = re.compile(
    r"^\d{4}/\d{1,2}/\d{1,2}/\d{1,2}/\d{1,2}/\d{1,2}/[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"
)


def test_single_png_is_promoted(upload_client, workdir, staging_dir):
    client, captured = upload_client(extensions=["png"], max_file_size_bytes=1000, save_file=True)
    content = os.urandom(500)

    response = client.post("/upload", files=[("photo", ("photo.png", content, "image/png"))])

    assert response.status_code == 200
    body = response.json()
    descriptor = body["photo"]
    assert isinstance(descriptor, dict)
    assert UPLOAD_ID_PATTERN.match(descriptor["id"])
    assert descriptor["url"] == f"uploads/{descriptor['id']}/photo.png"
    assert descriptor["size"] == 500
    assert descriptor["filename"] == "photo.png"
    assert "tempfile" not in descriptor

    uri = descriptor["uri"]
    assert os.path.isabs(uri)
    assert uri.startswith(str(workdir / "uploads"))
    with open(uri, "rb") as f:
        assert f.read() == content

    assert captured["state"] is captured["files"]
    assert list_files(staging_dir) == []


def test_oversized_file_is_rejected_and_cleaned(upload_client, workdir, staging_dir):
    client, captured = upload_client(extensions=["txt"], max_file_size_bytes=1000)

    response = client.post("/upload", files=[("doc", ("a.txt", b"x" * 1500, "text/plain"))])

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert "a.txt" in detail
    assert "1500" in detail
    assert "1000" in detail
    assert captured == {}
    assert list_files(staging_dir) == []
    assert not (workdir / "uploads").exists()


def test_every_violation_is_reported(upload_client, workdir, staging_dir):
    client, _ = upload_client(extensions=["png"], max_file_size_bytes=1000)

    response = client.post(
        "/upload",
        files=[
            ("doc", ("a.txt", b"x" * 1500, "text/plain")),
            ("images", ("b.png", b"y" * 2000, "image/png")),
            ("images", ("c.png", b"z" * 10, "image/png")),
        ],
    )

    assert response.status_code == 400
    violations = response.json()["violations"]
    assert len(violations) == 3
    assert "The file extension is not allowed (txt in a.txt)" in violations[0]
    assert "file: a.txt, size: 1500 bytes" in violations[1]
    assert "file: b.png, size: 2000 bytes" in violations[2]
    # the valid c.png is discarded together with the rest
    assert list_files(staging_dir) == []
    assert not (workdir / "uploads").exists()


def test_repeated_field_becomes_ordered_list(upload_client):
    client, captured = upload_client()

    response = client.post(
        "/upload",
        files=[
            ("docs", ("first.txt", b"one", "text/plain")),
            ("docs", ("second.txt", b"two", "text/plain")),
            ("cover", ("cover.txt", b"three", "text/plain")),
        ],
    )

    assert response.status_code == 200
    body = response.json()
    assert [d["filename"] for d in body["docs"]] == ["first.txt", "second.txt"]
    assert body["cover"]["filename"] == "cover.txt"
    assert isinstance(captured["files"]["docs"], list)
    with open(body["docs"][1]["uri"], "rb") as f:
        assert f.read() == b"two"


def test_identical_filenames_never_collide(upload_client):
    client, _ = upload_client()

    first = client.post("/upload", files=[("doc", ("same.txt", b"a", "text/plain"))]).json()
    second = client.post("/upload", files=[("doc", ("same.txt", b"b", "text/plain"))]).json()

    assert first["doc"]["uri"] != second["doc"]["uri"]
    assert first["doc"]["id"] != second["doc"]["id"]
    with open(first["doc"]["uri"], "rb") as f:
        assert f.read() == b"a"
    with open(second["doc"]["uri"], "rb") as f:
        assert f.read() == b"b"


def test_read_file_attaches_bytes(upload_client):
    client, captured = upload_client(read_file=True)
    content = b"in memory and on disk"

    response = client.post("/upload", files=[("doc", ("note.txt", content, "text/plain"))])

    assert response.status_code == 200
    assert "data" not in response.json()["doc"]
    descriptor = captured["files"]["doc"]
    assert descriptor.data == content
    with open(descriptor.uri, "rb") as f:
        assert f.read() == descriptor.data


def test_unsaved_files_move_to_holding_lane(upload_client, workdir, staging_dir):
    client, _ = upload_client(save_file=False)

    response = client.post("/upload", files=[("doc", ("keep.txt", b"held", "text/plain"))])

    assert response.status_code == 200
    descriptor = response.json()["doc"]
    assert "id" not in descriptor
    assert "uri" not in descriptor
    held = descriptor["tempfile"]
    assert os.path.dirname(held) == str(workdir / "temp_uploads")
    with open(held, "rb") as f:
        assert f.read() == b"held"
    assert list_files(staging_dir) == []
    assert not (workdir / "uploads").exists()


def test_scalar_fields_are_ignored(upload_client):
    client, _ = upload_client()

    response = client.post(
        "/upload",
        data={"title": "hello"},
        files=[("doc", ("a.txt", b"a", "text/plain"))],
    )

    assert response.status_code == 200
    assert set(response.json()) == {"doc"}


def test_field_mixing_scalar_and_file_is_rejected(upload_client, staging_dir):
    client, _ = upload_client()

    response = client.post(
        "/upload",
        data={"doc": "not a file"},
        files=[("doc", ("a.txt", b"a", "text/plain"))],
    )

    assert response.status_code == 400
    assert "mixes file and non-file values" in response.json()["detail"]
    assert list_files(staging_dir) == []


def test_content_length_over_limit_fails_before_decoding(upload_client, staging_dir):
    client, _ = upload_client(max_size_bytes=100)

    response = client.post("/upload", files=[("doc", ("big.txt", b"x" * 500, "text/plain"))])

    assert response.status_code == 413
    assert "Maximum total upload size exceeded" in response.json()["detail"]
    assert list_files(staging_dir) == []


def test_non_multipart_request_is_malformed(upload_client):
    client, _ = upload_client()

    response = client.post("/upload", content=b"{}", headers={"content-type": "application/json"})

    assert response.status_code == 400
    assert "multipart/form-data" in response.json()["detail"]


def test_missing_content_type_is_malformed(upload_client):
    client, _ = upload_client()

    response = client.post("/upload", content=b"raw")

    assert response.status_code == 400
