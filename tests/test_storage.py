from __future__ import annotations

import pytest

from car_booking.utils.storage import DocumentStorage, StorageError


@pytest.fixture
def storage(tmp_path):
    return DocumentStorage(tmp_path / "storage", "test-secret")


def test_upload_and_download(storage, tmp_path):
    path = storage.upload("user-1/profile/licence front.png", b"image-bytes")
    assert storage.exists(path)
    assert storage.download(path) == b"image-bytes"
    assert (tmp_path / "storage" / "customer-documents" / "user-1" / "profile").is_dir()


def test_upload_refuses_overwrite_unless_asked(storage):
    storage.upload("a/b.png", b"one")
    with pytest.raises(StorageError):
        storage.upload("a/b.png", b"two")
    storage.upload("a/b.png", b"two", overwrite=True)
    assert storage.download("a/b.png") == b"two"


@pytest.mark.parametrize("path", ["", "/etc/passwd", "../escape.png", "a/../../b.png"])
def test_paths_cannot_escape_the_bucket(storage, path):
    with pytest.raises(StorageError):
        storage.upload(path, b"x")


def test_download_missing(storage):
    with pytest.raises(StorageError):
        storage.download("nope.png")


def test_public_url_quotes_path(storage):
    assert storage.public_url("u/licence front.png") == (
        "storage://customer-documents/u/licence%20front.png"
    )
    assert storage.public_url(None) is None


def test_signed_url_round_trip(storage):
    url = storage.signed_url("u/licence front.png", 60, now=1_000)
    assert "expires=1060" in url
    assert storage.verify_signed_url(url, now=1_030)
    assert not storage.verify_signed_url(url, now=1_061)


def test_signed_url_rejects_tampering(storage, tmp_path):
    url = storage.signed_url("u/a.png", 60, now=1_000)
    assert not storage.verify_signed_url(url.replace("u/a.png", "u/b.png"), now=1_001)
    assert not storage.verify_signed_url(url.replace("expires=1060", "expires=9999"), now=1_001)
    other = DocumentStorage(tmp_path / "storage", "other-secret")
    assert not other.verify_signed_url(url, now=1_001)
    assert not storage.verify_signed_url("storage://customer-documents/u/a.png", now=1_001)
