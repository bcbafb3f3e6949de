"""Shared Firebase Admin app initialization."""

from __future__ import annotations

from pathlib import Path


def get_app(
    credentials_path: str = "",
    project_id: str = "",
    storage_bucket: str = "",
):
    """Return the default Firebase app, initializing it on first use.

    Uses a service-account JSON when ``credentials_path`` is set, otherwise
    Application Default Credentials.

    Raises:
        ImportError: If firebase-admin is not installed.
        FileNotFoundError: If the credentials file doesn't exist.
    """
    try:
        import firebase_admin
        from firebase_admin import credentials
    except ImportError:
        raise ImportError(
            "firebase-admin is required: pip install firebase-admin"
        ) from None

    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    if credentials_path:
        path = Path(credentials_path).expanduser()
        if not path.exists():
            raise FileNotFoundError(
                f"Firebase サービスアカウントファイルが見つかりません: {path}"
            )
        cred = credentials.Certificate(str(path))
    else:
        cred = credentials.ApplicationDefault()

    options: dict = {}
    if project_id:
        options["projectId"] = project_id
    if storage_bucket:
        options["storageBucket"] = storage_bucket

    return firebase_admin.initialize_app(cred, options or None)
