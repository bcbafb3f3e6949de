"""Google Drive object store via OAuth 2.0."""

from __future__ import annotations

from pathlib import Path

from . import ObjectStore, StorageError


class GoogleDriveObjectStore(ObjectStore):
    """Upload images to Google Drive using OAuth 2.0.

    On first use, opens a browser for Google account authorization.
    The token is saved for subsequent use. Uploaded files are shared as
    "anyone with the link can view" so the vision model can fetch them.
    """

    SCOPES = ["https://www.googleapis.com/auth/drive.file"]

    def __init__(
        self,
        credentials_path: str | Path = "~/.config/foodscan/gdrive_credentials.json",
        token_path: str | Path = "~/.config/foodscan/gdrive_token.json",
        folder_id: str = "",
    ) -> None:
        self._credentials_path = Path(credentials_path).expanduser()
        self._token_path = Path(token_path).expanduser()
        self._folder_id = folder_id
        self._service = None

    def _get_service(self):
        """Build and return the Drive API service, authenticating if needed."""
        if self._service is not None:
            return self._service

        try:
            from google.auth.transport.requests import Request
            from google.oauth2.credentials import Credentials
            from google_auth_oauthlib.flow import InstalledAppFlow
            from googleapiclient.discovery import build
        except ImportError:
            raise ImportError(
                "Google Drive 連携に必要なパッケージがインストールされていません:\n"
                "  pip install google-api-python-client google-auth-oauthlib"
            )

        creds = None

        # Load saved token
        if self._token_path.exists():
            creds = Credentials.from_authorized_user_file(
                str(self._token_path), self.SCOPES
            )

        # Refresh or get new credentials
        if creds is None or not creds.valid:
            if creds and creds.expired and creds.refresh_token:
                creds.refresh(Request())
            else:
                if not self._credentials_path.exists():
                    raise FileNotFoundError(
                        f"OAuth クレデンシャルファイルが見つかりません: "
                        f"{self._credentials_path}\n"
                        f"Google Cloud Console からダウンロードしてください。"
                    )
                flow = InstalledAppFlow.from_client_secrets_file(
                    str(self._credentials_path), self.SCOPES
                )
                creds = flow.run_local_server(port=0)

            # Save token for next time
            self._token_path.parent.mkdir(parents=True, exist_ok=True)
            self._token_path.write_text(creds.to_json())

        self._service = build("drive", "v3", credentials=creds)
        return self._service

    def upload(self, name: str, data: bytes, content_type: str) -> str:
        """Upload image bytes to Google Drive.

        Returns:
            A direct download link for the uploaded file.

        Raises:
            StorageError: If authentication or the upload fails.
        """
        try:
            service = self._get_service()

            from googleapiclient.http import MediaInMemoryUpload

            file_metadata: dict = {"name": name}
            if self._folder_id:
                file_metadata["parents"] = [self._folder_id]

            media = MediaInMemoryUpload(data, mimetype=content_type, resumable=False)
            result = (
                service.files()
                .create(
                    body=file_metadata,
                    media_body=media,
                    fields="id, webContentLink",
                )
                .execute()
            )
            service.permissions().create(
                fileId=result["id"],
                body={"type": "anyone", "role": "reader"},
            ).execute()
        except (ImportError, FileNotFoundError) as e:
            raise StorageError(str(e), code="storage/unauthorized") from e
        except Exception as e:
            resp = getattr(e, "resp", None)
            status = getattr(resp, "status", None)
            content = getattr(e, "content", None)
            raise StorageError(
                str(e),
                code=f"storage/http-{status}" if status else "storage/unknown",
                server_response=content.decode("utf-8", "replace")
                if isinstance(content, bytes)
                else None,
            ) from e

        return result.get("webContentLink") or (
            f"https://drive.google.com/uc?id={result['id']}&export=download"
        )
