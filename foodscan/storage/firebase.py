"""Firebase Storage object store."""

from __future__ import annotations

import uuid
from urllib.parse import quote

from ..firebase import get_app
from . import ObjectStore, StorageError

_DOWNLOAD_URL = (
    "https://firebasestorage.googleapis.com/v0/b/{bucket}/o/{name}"
    "?alt=media&token={token}"
)


def _error_code(exc: Exception) -> str:
    status = getattr(exc, "code", None)
    match status:
        case 401 | 403:
            return "storage/unauthorized"
        case 408:
            return "storage/canceled"
        case None:
            return "storage/unknown"
        case _:
            return f"storage/http-{status}"


class FirebaseObjectStore(ObjectStore):
    """Upload images to a Firebase Storage bucket.

    Returns the same token-protected download URL the Firebase client SDKs
    hand out from ``getDownloadURL``.
    """

    def __init__(
        self,
        bucket_name: str = "",
        credentials_path: str = "",
        project_id: str = "",
    ) -> None:
        self._bucket_name = bucket_name
        self._credentials_path = credentials_path
        self._project_id = project_id
        self._bucket = None

    def _get_bucket(self):
        if self._bucket is not None:
            return self._bucket

        app = get_app(
            credentials_path=self._credentials_path,
            project_id=self._project_id,
            storage_bucket=self._bucket_name,
        )
        from firebase_admin import storage

        self._bucket = storage.bucket(self._bucket_name or None, app=app)
        return self._bucket

    def upload(self, name: str, data: bytes, content_type: str) -> str:
        try:
            bucket = self._get_bucket()
            token = uuid.uuid4().hex
            blob = bucket.blob(name)
            blob.metadata = {"firebaseStorageDownloadTokens": token}
            blob.upload_from_string(data, content_type=content_type)
        except Exception as e:
            response = getattr(e, "response", None)
            raise StorageError(
                str(e),
                code=_error_code(e),
                server_response=getattr(response, "text", None),
            ) from e

        return _DOWNLOAD_URL.format(
            bucket=bucket.name, name=quote(name, safe=""), token=token
        )
