"""Shared fixtures for the upload server tests."""

import os

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from app.core.errors import register_exception_handlers
from app.core.upload_middleware import PreUploadValidator, UploadHandler
from app.models.file_meta import public_result


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run each test from its own empty working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def staging_dir(workdir):
    path = workdir / "staging"
    path.mkdir()
    return path


@pytest.fixture
def upload_client(workdir, staging_dir):
    """Build a client whose /upload route runs an UploadHandler with the given options.

    Returns (client, captured) where captured holds the dependency result and
    what the handler saw on request.state.
    """

    def build(**overrides):
        handler = UploadHandler(staging_dir=str(staging_dir), **overrides)
        app = FastAPI()
        register_exception_handlers(app)
        captured = {}

        @app.post("/upload")
        async def endpoint(request: Request, files=Depends(handler)):
            captured["files"] = files
            captured["state"] = request.state.uploaded_files
            return public_result(files)

        return TestClient(app), captured

    return build


@pytest.fixture
def pre_upload_client():
    def build(**overrides):
        validator = PreUploadValidator(**overrides)
        app = FastAPI()
        register_exception_handlers(app)

        @app.post("/pre-upload")
        async def endpoint(manifest=Depends(validator)):
            return {"valid": True, "files": len(manifest.declared_files())}

        return TestClient(app)

    return build


def list_files(path):
    """All regular files below path, relative, sorted."""
    found = []
    for root, _dirs, files in os.walk(path):
        for name in files:
            found.append(os.path.relpath(os.path.join(root, name), path))
    return sorted(found)
