"""
Local filesystem storage backend for uploaded source files.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from pathlib import Path
from typing import BinaryIO
from urllib.parse import parse_qs, unquote, urlencode, urlsplit

from app.logging_utils import log_event
from db.repositories.errors import StorageError

logger = logging.getLogger(__name__)


class LocalFileStorage:
    """
    Stores files under a root directory, addressed by relative path.

    URLs are ``file://`` URLs carrying an expiry and an HMAC-SHA256
    signature; ``signing_key`` is required to issue or verify them.
    """

    def __init__(self, root_dir: str | Path = "data/uploads", signing_key: str | None = None) -> None:
        self._root_dir = Path(root_dir)
        self._signing_key = signing_key

    def upload(self, path: str, data: BinaryIO | bytes) -> None:
        payload = data if isinstance(data, (bytes, bytearray)) else data.read()
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = target.with_suffix(f"{target.suffix}.tmp")
        try:
            with tmp_path.open("wb") as handle:
                handle.write(payload)
            tmp_path.replace(target)
        except OSError as exc:
            raise StorageError(f"Failed to write {path} to storage.") from exc
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError as cleanup_exc:
                    log_event(
                        logger,
                        logging.WARNING,
                        "storage_tmp_cleanup_failed",
                        exc=cleanup_exc,
                        path=path,
                        tmp_path=str(tmp_path),
                    )

    def download(self, path: str) -> BinaryIO:
        target = self._resolve(path)
        try:
            return target.open("rb")
        except FileNotFoundError as exc:
            raise StorageError(f"File not found in storage: {path}") from exc
        except OSError as exc:
            raise StorageError(f"Failed to read {path} from storage.") from exc

    def delete(self, path: str) -> None:
        target = self._resolve(path)
        if not target.exists():
            return
        try:
            target.unlink()
        except OSError as exc:
            raise StorageError(f"Failed to delete {path} from storage.") from exc

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def get_url(self, path: str, expiration_minutes: int = 60) -> str:
        """
        Return a signed ``file://`` URL valid for ``expiration_minutes``.
        """

        if expiration_minutes <= 0:
            raise StorageError("URL expiration must be positive.")
        target = self._resolve(path)
        expires = int(time.time()) + expiration_minutes * 60
        signature = self._sign(target.as_posix(), expires)
        query = urlencode({"expires": expires, "signature": signature})
        return f"{target.as_uri()}?{query}"

    def verify_url(self, url: str, now: float | None = None) -> bool:
        parts = urlsplit(url)
        params = parse_qs(parts.query)
        try:
            expires = int(params["expires"][0])
            signature = params["signature"][0]
        except (KeyError, IndexError, ValueError):
            return False
        if expires < (time.time() if now is None else now):
            return False
        path = Path(unquote(parts.path)).as_posix()
        return hmac.compare_digest(signature, self._sign(path, expires))

    def _sign(self, path: str, expires: int) -> str:
        if not self._signing_key:
            raise StorageError("A signing key is required to issue storage URLs.")
        message = f"{path}:{expires}".encode("utf-8")
        return hmac.new(self._signing_key.encode("utf-8"), message, hashlib.sha256).hexdigest()

    def _resolve(self, path: str) -> Path:
        root = self._root_dir.resolve()
        target = (root / Path(path)).resolve()
        if target != root and root not in target.parents:
            raise StorageError(f"Path escapes storage root: {path}")
        if target == root:
            raise StorageError("A file path is required.")
        return target
