import io

import pytest
from fastapi import HTTPException
from starlette.datastructures import UploadFile
from starlette.requests import Request

from pfs.app.services.listing_responder import ListingResponder, contains_dot_dot, to_http_error
from pfs.app.services.upload_receiver import CREATE_FAILED_MESSAGE, UploadReceiver


def make_request(path: str) -> Request:
    return Request({
        "type": "http",
        "method": "GET",
        "path": path,
        "query_string": b"",
        "headers": [],
    })


class BrokenUpload:
    """Upload whose stream fails after the first chunk."""

    filename = "broken.bin"

    def __init__(self):
        self.reads = 0

    async def read(self, size=-1):
        self.reads += 1
        if self.reads == 1:
            return b"first chunk"
        raise OSError(5, "Input/output error")


@pytest.mark.asyncio
async def test_store_copies_in_chunks(tmp_path):
    receiver = UploadReceiver(tmp_path, chunk_size=4)
    upload = UploadFile(io.BytesIO(b"0123456789"), filename="digits.txt")

    written = await receiver.store(upload, tmp_path / "digits.txt")

    assert written == 10
    assert (tmp_path / "digits.txt").read_bytes() == b"0123456789"


@pytest.mark.asyncio
async def test_store_truncates_existing_file(tmp_path):
    (tmp_path / "a.txt").write_bytes(b"a much longer previous content")
    receiver = UploadReceiver(tmp_path)
    upload = UploadFile(io.BytesIO(b"short"), filename="a.txt")

    await receiver.store(upload, tmp_path / "a.txt")

    assert (tmp_path / "a.txt").read_bytes() == b"short"


@pytest.mark.asyncio
async def test_store_create_failure(tmp_path):
    (tmp_path / "taken").mkdir()
    receiver = UploadReceiver(tmp_path)
    upload = UploadFile(io.BytesIO(b"data"), filename="taken")

    with pytest.raises(HTTPException) as exc_info:
        await receiver.store(upload, tmp_path / "taken")

    assert exc_info.value.status_code == 500
    assert exc_info.value.detail == CREATE_FAILED_MESSAGE


@pytest.mark.asyncio
async def test_store_write_failure_keeps_partial_file(tmp_path):
    receiver = UploadReceiver(tmp_path)

    with pytest.raises(HTTPException) as exc_info:
        await receiver.store(BrokenUpload(), tmp_path / "broken.bin")

    assert exc_info.value.status_code == 500
    # No rollback
    assert (tmp_path / "broken.bin").read_bytes() == b"first chunk"


@pytest.mark.asyncio
async def test_respond_rejects_dot_dot(tmp_path):
    responder = ListingResponder(tmp_path)

    with pytest.raises(HTTPException) as exc_info:
        await responder.respond(make_request("/../etc/passwd"), "../etc/passwd")

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_respond_permission_error_is_forbidden(tmp_path, monkeypatch):
    responder = ListingResponder(tmp_path)

    def denied(directory, title):
        raise PermissionError(13, "Permission denied", str(directory))

    monkeypatch.setattr(responder, "render_listing", denied)

    with pytest.raises(HTTPException) as exc_info:
        await responder.respond(make_request("/"), "")

    assert exc_info.value.status_code == 403
    assert str(tmp_path) not in exc_info.value.detail


def test_contains_dot_dot():
    assert contains_dot_dot("..")
    assert contains_dot_dot("a/../b")
    assert contains_dot_dot("a\\..\\b")
    assert not contains_dot_dot("a..b/c")
    assert not contains_dot_dot("...")
    assert not contains_dot_dot("")


def test_to_http_error():
    assert to_http_error(FileNotFoundError()).status_code == 404
    assert to_http_error(NotADirectoryError()).status_code == 404
    assert to_http_error(PermissionError()).status_code == 403
    assert to_http_error(OSError(5, "Input/output error")).status_code == 500


def test_render_listing_banner(tmp_path):
    (tmp_path / "a.txt").write_text("a")

    plain = ListingResponder(tmp_path).render_listing(tmp_path, "/")
    with_banner = ListingResponder(tmp_path, add_upload_link=True).render_listing(tmp_path, "/")

    assert "fs-upload" not in plain
    assert '<a href="/fs-upload">' in with_banner
    assert '<a href="a.txt">a.txt</a>' in plain
