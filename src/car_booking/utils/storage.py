"""File-backed storage area for uploaded customer documents and receipts."""

from __future__ import annotations

import hashlib
import hmac
import time
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import parse_qs, quote, unquote, urlsplit

from car_booking.config import SIGNED_URL_EXPIRES_IN, STORAGE_BUCKET
from car_booking.logging_config import get_logger


class StorageError(Exception):
    """Raised when an object cannot be stored or addressed."""


class DocumentStorage:
    """A single named storage area rooted on the local filesystem.

    Object paths are relative POSIX paths such as
    ``receipts/<booking-id>/deposit_1717200000.png``. Public URLs address the
    object directly; signed URLs carry an expiry and an HMAC signature that
    :meth:`verify_signed_url` checks.
    """

    def __init__(
        self,
        root: Path,
        secret: str,
        *,
        bucket: str = STORAGE_BUCKET,
        base_url: str = "storage://",
    ) -> None:
        self._root = Path(root) / bucket
        self._secret = secret.encode("utf-8")
        self._bucket = bucket
        self._base_url = base_url if base_url.endswith("/") else base_url + "/"
        self._logger = get_logger(self.__class__.__name__)

    @property
    def bucket(self) -> str:
        return self._bucket

    def _resolve(self, object_path: str) -> Path:
        pure = PurePosixPath(object_path)
        if not object_path or pure.is_absolute() or ".." in pure.parts:
            raise StorageError(f"Invalid storage path: {object_path!r}")
        return self._root.joinpath(*pure.parts)

    def upload(self, object_path: str, data: bytes, *, overwrite: bool = False) -> str:
        target = self._resolve(object_path)
        if target.exists() and not overwrite:
            raise StorageError(f"Object already exists: {object_path}")
        self._logger.info("Uploading to bucket=%s path=%s", self._bucket, object_path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError:
            self._logger.exception(
                "Upload failed bucket=%s path=%s", self._bucket, object_path
            )
            raise
        return object_path

    def download(self, object_path: str) -> bytes:
        target = self._resolve(object_path)
        if not target.is_file():
            raise StorageError(f"Object not found: {object_path}")
        return target.read_bytes()

    def exists(self, object_path: str) -> bool:
        return self._resolve(object_path).is_file()

    def public_url(self, object_path: Optional[str]) -> Optional[str]:
        if not object_path:
            return None
        self._resolve(object_path)
        return f"{self._base_url}{self._bucket}/{quote(object_path)}"

    def _signature(self, object_path: str, expires: int) -> str:
        message = f"{self._bucket}/{object_path}:{expires}".encode("utf-8")
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def signed_url(
        self,
        object_path: Optional[str],
        expires_in: int = SIGNED_URL_EXPIRES_IN,
        *,
        now: Optional[float] = None,
    ) -> Optional[str]:
        """Time-limited URL for a private object."""
        if not object_path:
            return None
        expires = int((time.time() if now is None else now) + expires_in)
        signature = self._signature(object_path, expires)
        return (
            f"{self.public_url(object_path)}?expires={expires}&signature={signature}"
        )

    def verify_signed_url(self, url: str, *, now: Optional[float] = None) -> bool:
        parts = urlsplit(url)
        prefix = f"/{self._bucket}/"
        path = f"/{parts.netloc}{parts.path}" if parts.netloc else parts.path
        if prefix not in path:
            return False
        object_path = unquote(path.split(prefix, 1)[1])
        query = parse_qs(parts.query)
        try:
            expires = int(query["expires"][0])
            signature = query["signature"][0]
        except (KeyError, IndexError, ValueError):
            return False
        if expires < (time.time() if now is None else now):
            return False
        expected = self._signature(object_path, expires)
        return hmac.compare_digest(expected, signature)
