"""Tests for object stores (mocked Firebase and Google Drive clients)."""

import sys
from unittest.mock import MagicMock, patch

import pytest

from foodscan.config import load_config
from foodscan.firebase import get_app
from foodscan.storage import StorageError, create_store
from foodscan.storage.firebase import FirebaseObjectStore
from foodscan.storage.gdrive import GoogleDriveObjectStore


def _mock_firebase_admin():
    mock = MagicMock()
    return mock, patch.dict(sys.modules, {
        "firebase_admin": mock,
        "firebase_admin.credentials": mock.credentials,
        "firebase_admin.storage": mock.storage,
    })


def _mock_googleapiclient():
    """Context manager that mocks googleapiclient.http.MediaInMemoryUpload."""
    mock_http = MagicMock()
    mock_api = MagicMock()
    mock_api.http = mock_http
    return patch.dict("sys.modules", {
        "googleapiclient": mock_api,
        "googleapiclient.http": mock_http,
    })


class HttpError(Exception):
    def __init__(self, code: int) -> None:
        super().__init__(f"HTTP {code}")
        self.code = code


class TestCreateStore:
    def test_default_is_firebase(self):
        config = load_config()
        assert isinstance(create_store(config), FirebaseObjectStore)

    def test_gdrive(self):
        config = load_config()
        config.storage.backend = "gdrive"
        assert isinstance(create_store(config), GoogleDriveObjectStore)

    def test_none(self):
        config = load_config()
        config.storage.backend = "none"
        assert create_store(config) is None

    def test_unknown(self):
        config = load_config()
        config.storage.backend = "s3"
        with pytest.raises(ValueError, match="不明なストレージバックエンド"):
            create_store(config)


class TestGetApp:
    def test_returns_existing_app(self):
        mock, patcher = _mock_firebase_admin()
        with patcher:
            app = get_app()
        assert app is mock.get_app.return_value
        mock.initialize_app.assert_not_called()

    def test_initializes_with_service_account(self, tmp_path):
        creds = tmp_path / "service-account.json"
        creds.write_text("{}")
        mock, patcher = _mock_firebase_admin()
        mock.get_app.side_effect = ValueError("no app")

        with patcher:
            get_app(
                credentials_path=str(creds),
                project_id="proj",
                storage_bucket="proj.appspot.com",
            )

        mock.credentials.Certificate.assert_called_once_with(str(creds))
        mock.initialize_app.assert_called_once_with(
            mock.credentials.Certificate.return_value,
            {"projectId": "proj", "storageBucket": "proj.appspot.com"},
        )

    def test_application_default_credentials(self):
        mock, patcher = _mock_firebase_admin()
        mock.get_app.side_effect = ValueError("no app")

        with patcher:
            get_app()

        mock.credentials.ApplicationDefault.assert_called_once()
        mock.initialize_app.assert_called_once_with(
            mock.credentials.ApplicationDefault.return_value, None
        )

    def test_missing_credentials_file(self, tmp_path):
        mock, patcher = _mock_firebase_admin()
        mock.get_app.side_effect = ValueError("no app")

        with patcher, pytest.raises(FileNotFoundError, match="サービスアカウント"):
            get_app(credentials_path=str(tmp_path / "missing.json"))


class TestFirebaseObjectStore:
    def _store(self):
        store = FirebaseObjectStore(bucket_name="proj.appspot.com")
        bucket = MagicMock()
        bucket.name = "proj.appspot.com"
        store._bucket = bucket
        return store, bucket

    def test_upload_returns_download_url(self):
        store, bucket = self._store()
        blob = bucket.blob.return_value

        url = store.upload("food_images/1-abc.jpg", b"jpeg", "image/jpeg")

        bucket.blob.assert_called_once_with("food_images/1-abc.jpg")
        blob.upload_from_string.assert_called_once_with(b"jpeg", content_type="image/jpeg")
        token = blob.metadata["firebaseStorageDownloadTokens"]
        assert url == (
            "https://firebasestorage.googleapis.com/v0/b/proj.appspot.com/o/"
            f"food_images%2F1-abc.jpg?alt=media&token={token}"
        )

    def test_tokens_are_unique(self):
        store, bucket = self._store()
        first = store.upload("a.jpg", b"1", "image/jpeg")
        second = store.upload("a.jpg", b"1", "image/jpeg")
        assert first != second

    @pytest.mark.parametrize(
        ("status", "code"),
        [
            (403, "storage/unauthorized"),
            (401, "storage/unauthorized"),
            (408, "storage/canceled"),
            (500, "storage/http-500"),
        ],
    )
    def test_upload_error_codes(self, status, code):
        store, bucket = self._store()
        bucket.blob.return_value.upload_from_string.side_effect = HttpError(status)

        with pytest.raises(StorageError) as exc_info:
            store.upload("a.jpg", b"1", "image/jpeg")

        assert exc_info.value.code == code

    def test_upload_unknown_error(self):
        store, bucket = self._store()
        bucket.blob.side_effect = RuntimeError("boom")

        with pytest.raises(StorageError) as exc_info:
            store.upload("a.jpg", b"1", "image/jpeg")

        assert exc_info.value.code == "storage/unknown"
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_get_bucket_uses_firebase_app(self):
        mock, patcher = _mock_firebase_admin()
        store = FirebaseObjectStore(bucket_name="proj.appspot.com")

        with patcher:
            bucket = store._get_bucket()

        assert bucket is mock.storage.bucket.return_value
        mock.storage.bucket.assert_called_once_with(
            "proj.appspot.com", app=mock.get_app.return_value
        )


class TestGoogleDriveObjectStore:
    def _store(self, folder_id: str = "", result: dict | None = None):
        store = GoogleDriveObjectStore(folder_id=folder_id)
        mock_service = MagicMock()
        mock_files = MagicMock()
        mock_create = MagicMock()
        mock_create.execute.return_value = result or {
            "id": "file_abc123",
            "webContentLink": "https://drive.google.com/uc?id=file_abc123&export=download",
        }
        mock_files.create.return_value = mock_create
        mock_service.files.return_value = mock_files
        store._service = mock_service
        return store, mock_service, mock_files

    def test_init_defaults(self):
        store = GoogleDriveObjectStore()
        assert "gdrive_credentials.json" in str(store._credentials_path)
        assert "gdrive_token.json" in str(store._token_path)
        assert store._folder_id == ""

    def test_init_custom_paths(self, tmp_path):
        creds = tmp_path / "creds.json"
        token = tmp_path / "token.json"
        store = GoogleDriveObjectStore(
            credentials_path=str(creds),
            token_path=str(token),
            folder_id="folder123",
        )
        assert store._credentials_path == creds
        assert store._token_path == token
        assert store._folder_id == "folder123"

    def test_upload_success(self):
        store, service, files = self._store(folder_id="folder123")

        with _mock_googleapiclient():
            url = store.upload("food_images/1-abc.jpg", b"jpeg", "image/jpeg")

        assert url == "https://drive.google.com/uc?id=file_abc123&export=download"
        body = files.create.call_args.kwargs["body"]
        assert body["name"] == "food_images/1-abc.jpg"
        assert body["parents"] == ["folder123"]
        service.permissions.return_value.create.assert_called_once_with(
            fileId="file_abc123",
            body={"type": "anyone", "role": "reader"},
        )

    def test_upload_no_folder(self):
        store, _, files = self._store()

        with _mock_googleapiclient():
            store.upload("a.jpg", b"1", "image/jpeg")

        body = files.create.call_args.kwargs["body"]
        assert "parents" not in body

    def test_upload_without_content_link(self):
        store, _, _ = self._store(result={"id": "file_xyz"})

        with _mock_googleapiclient():
            url = store.upload("a.jpg", b"1", "image/jpeg")

        assert url == "https://drive.google.com/uc?id=file_xyz&export=download"

    def test_upload_api_error(self):
        store, _, files = self._store()
        error = Exception("quota")
        error.resp = MagicMock(status=403)
        error.content = b'{"error": "rateLimitExceeded"}'
        files.create.return_value.execute.side_effect = error

        with _mock_googleapiclient(), pytest.raises(StorageError) as exc_info:
            store.upload("a.jpg", b"1", "image/jpeg")

        assert exc_info.value.code == "storage/http-403"
        assert "rateLimitExceeded" in exc_info.value.server_response

    def test_missing_credentials_file(self, tmp_path):
        """Missing OAuth client secrets surface as an authorization failure."""
        store = GoogleDriveObjectStore(
            credentials_path=str(tmp_path / "nonexistent.json"),
            token_path=str(tmp_path / "token.json"),
        )

        with patch.dict(sys.modules, {
            "google": MagicMock(),
            "google.auth": MagicMock(),
            "google.auth.transport": MagicMock(),
            "google.auth.transport.requests": MagicMock(),
            "google.oauth2": MagicMock(),
            "google.oauth2.credentials": MagicMock(),
            "google_auth_oauthlib": MagicMock(),
            "google_auth_oauthlib.flow": MagicMock(),
            "googleapiclient": MagicMock(),
            "googleapiclient.discovery": MagicMock(),
        }):
            with pytest.raises(StorageError, match="クレデンシャルファイルが見つかりません") as exc_info:
                store.upload("a.jpg", b"1", "image/jpeg")

        assert exc_info.value.code == "storage/unauthorized"
