"""Turn a local image into a URL the vision model can fetch."""

from __future__ import annotations

import asyncio
import base64
import logging
import mimetypes
import random
import string
import time
from pathlib import Path
from typing import Callable
from urllib.parse import urlparse
from urllib.request import url2pathname

from .storage import ObjectStore, StorageError

DEFAULT_PREFIX = "food_images"
DEFAULT_MAX_BYTES = 5 * 1024 * 1024

_BASE36 = string.digits + string.ascii_lowercase
_SUFFIX_LEN = 13


def local_path(uri: str) -> Path:
    """Resolve a plain path or ``file://`` URI to a filesystem path."""
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(url2pathname(parsed.path))
    return Path(uri).expanduser()


def read_image_bytes(uri: str) -> bytes:
    return local_path(uri).read_bytes()


def to_data_uri(uri: str) -> str:
    """Inline the image as a base64 ``data:`` URI."""
    data = read_image_bytes(uri)
    return f"data:image/jpeg;base64,{base64.b64encode(data).decode('ascii')}"


class MediaUploader:
    """Upload images to an object store, inlining them when that fails.

    ``upload_image`` never raises because of the remote store; only a failure
    to read the local file in the fallback path propagates.
    """

    def __init__(
        self,
        store: ObjectStore | None,
        *,
        prefix: str = DEFAULT_PREFIX,
        max_bytes: int = DEFAULT_MAX_BYTES,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._prefix = prefix.strip("/")
        self._max_bytes = max_bytes
        self._clock = clock
        self._rng = rng or random.Random()
        self._log = logger or logging.getLogger(__name__)

    def object_name(self) -> str:
        """Collision-resistant name: epoch millis plus a random base36 suffix."""
        millis = int(self._clock() * 1000)
        suffix = "".join(self._rng.choice(_BASE36) for _ in range(_SUFFIX_LEN))
        return f"{self._prefix}/{millis}-{suffix}.jpg"

    async def upload_image(self, local_uri: str) -> str:
        """Upload the image at ``local_uri`` and return its public URL.

        Falls back to a ``data:image/jpeg;base64,...`` URI on any upload
        failure.
        """
        name = self.object_name()
        try:
            url = await self._upload(local_uri, name)
            self._log.info("画像をアップロードしました: %s", url)
            return url
        except Exception as e:
            self._log.error(
                "画像アップロードに失敗しました: code=%s message=%s server_response=%s name=%s",
                getattr(e, "code", "unknown"),
                e,
                getattr(e, "server_response", None) or "None",
                name,
            )
            match getattr(e, "code", None):
                case "storage/unauthorized":
                    self._log.error("権限エラーの可能性があります。ストレージのルールを確認してください。")
                case "storage/canceled":
                    self._log.error("アップロードがキャンセルまたはタイムアウトしました。")
                case "storage/unknown":
                    self._log.error("ネットワークエラーまたはストレージサービスの障害です。")

        self._log.info("base64 エンコードにフォールバックします")
        return await asyncio.to_thread(to_data_uri, local_uri)

    async def _upload(self, local_uri: str, name: str) -> str:
        if self._store is None:
            raise StorageError(
                "オブジェクトストアが設定されていません", code="storage/no-default-bucket"
            )

        data = await asyncio.to_thread(read_image_bytes, local_uri)
        content_type = mimetypes.guess_type(str(local_path(local_uri)))[0] or "image/jpeg"
        if not content_type.startswith("image/"):
            raise StorageError(
                f"画像以外のファイルはアップロードできません: {content_type}",
                code="storage/invalid-format",
            )
        if len(data) > self._max_bytes:
            raise StorageError(
                f"画像サイズが上限を超えています: {len(data)} > {self._max_bytes} bytes",
                code="storage/quota-exceeded",
            )

        self._log.debug("オブジェクトストアへアップロード中: %s", name)
        return await asyncio.to_thread(self._store.upload, name, data, content_type)
