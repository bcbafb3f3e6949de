"""Object store base class, errors, and factory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..config import ScanConfig


class StorageError(Exception):
    """An upload to the remote object store failed."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "storage/unknown",
        server_response: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.server_response = server_response


class ObjectStore(ABC):
    """Binary upload to a remote store that returns a fetchable URL."""

    @abstractmethod
    def upload(self, name: str, data: bytes, content_type: str) -> str:
        """Upload ``data`` under ``name`` and return a long-lived URL.

        Raises:
            StorageError: If the upload fails.
        """
        ...


def create_store(config: ScanConfig) -> ObjectStore | None:
    """Create an object store based on configuration.

    Returns None for backend ``"none"``; images are then always inlined as
    data URIs.
    """
    backend_name = config.storage.backend

    match backend_name:
        case "firebase":
            from .firebase import FirebaseObjectStore

            return FirebaseObjectStore(
                bucket_name=config.firebase.storage_bucket,
                credentials_path=config.firebase.credentials_path,
                project_id=config.firebase.project_id,
            )
        case "gdrive":
            from .gdrive import GoogleDriveObjectStore

            return GoogleDriveObjectStore(
                credentials_path=config.gdrive.credentials_path,
                token_path=config.gdrive.token_path,
                folder_id=config.gdrive.folder_id,
            )
        case "none":
            return None
        case _:
            raise ValueError(
                f"不明なストレージバックエンド: {backend_name!r}  "
                f"(firebase / gdrive / none から選択してください)"
            )
