"""Per-user scan history: Firestore first, local SQLite as the fallback."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

from .db import LocalScanHistoryDB
from .firebase import get_app
from .models import ProductDetails

if TYPE_CHECKING:
    from .config import ScanConfig


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _sort_key(details: ProductDetails) -> datetime:
    scan_date = details.scan_date
    if scan_date.tzinfo is None:
        scan_date = scan_date.replace(tzinfo=timezone.utc)
    return scan_date


def _is_permission_error(exc: Exception) -> bool:
    message = str(exc).lower()
    return "permission" in message or "unauthorized" in message


class FirestoreScanHistory:
    """Scan documents in a Firestore collection, one document per scan."""

    def __init__(
        self,
        collection: str = "scanHistory",
        *,
        client=None,
        credentials_path: str = "",
        project_id: str = "",
    ) -> None:
        self._collection = collection
        self._client = client
        self._credentials_path = credentials_path
        self._project_id = project_id

    def _get_client(self):
        if self._client is None:
            app = get_app(
                credentials_path=self._credentials_path,
                project_id=self._project_id,
            )
            from firebase_admin import firestore

            self._client = firestore.client(app=app)
        return self._client

    async def add(self, document: dict) -> None:
        await asyncio.to_thread(self._add, document)

    async def query(self, user_id: str) -> list[dict]:
        return await asyncio.to_thread(self._query, user_id)

    def _add(self, document: dict) -> None:
        self._get_client().collection(self._collection).add(document)

    def _query(self, user_id: str) -> list[dict]:
        docs = (
            self._get_client()
            .collection(self._collection)
            .where("userId", "==", user_id)
            .stream()
        )
        return [doc.to_dict() for doc in docs]


class HistoryStore:
    """Persist and list a user's past analyses.

    Writes go to the remote store when one is configured and fall back to
    the local database on any failure. Reads return the remote scans plus
    every locally saved fallback. Neither operation raises.
    """

    def __init__(
        self,
        remote: FirestoreScanHistory | None,
        local: LocalScanHistoryDB,
        *,
        clock: Callable[[], datetime] = _utcnow,
        logger: logging.Logger | None = None,
    ) -> None:
        self._remote = remote
        self._local = local
        self._clock = clock
        self._log = logger or logging.getLogger(__name__)

    async def save(self, user_id: str | None, details: ProductDetails) -> None:
        """Save a scan for ``user_id``; a missing user id is a logged no-op."""
        if not user_id:
            self._log.info("ユーザーIDがないため履歴を保存しません")
            return

        try:
            document = {
                "userId": user_id,
                "recallInfo": details.recall_info.to_dict(),
                "nutritionalInfo": (
                    details.nutritional_info.to_dict() if details.nutritional_info else None
                ),
                "description": details.description or "",
                "imageUri": details.image_uri or "",
                "scanDate": details.scan_date,
                "createdAt": self._clock(),
            }

            if self._remote is not None:
                try:
                    await self._remote.add(document)
                    self._log.info("スキャン履歴を Firestore に保存しました")
                    return
                except Exception as e:
                    self._log.error("Firestore への保存に失敗しました: %s", e)
                    if _is_permission_error(e):
                        self._log.error(
                            "権限エラーの可能性があります。Firestore のセキュリティルールを確認してください。"
                        )
                    self._log.warning("ローカルストレージに保存します")

            await asyncio.to_thread(self._save_local, user_id, document)
        except Exception:
            self._log.exception("スキャン履歴の保存に失敗しました")

    def _save_local(self, user_id: str, document: dict) -> None:
        created_at = self._clock()
        record = {
            **document,
            "id": f"local_{int(created_at.timestamp() * 1000)}",
            "scanDate": document["scanDate"].isoformat(),
            "createdAt": created_at.isoformat(),
        }
        self._local.append(user_id, record)
        self._log.info("スキャン履歴をローカルストレージに保存しました")

    async def list(self, user_id: str) -> list[ProductDetails]:
        """Return the user's scans, newest first; ``[]`` on any failure."""
        try:
            records: list[dict] = []
            if self._remote is not None:
                try:
                    records = await self._remote.query(user_id)
                    self._log.info("Firestore からスキャン履歴を取得しました")
                except Exception as e:
                    self._log.error("Firestore からの取得に失敗しました: %s", e)
                    self._log.warning("ローカルストレージの履歴のみを使用します")

            # Scans that fell back to local storage are always included
            records = records + await asyncio.to_thread(self._local.get_records, user_id)

            history = [ProductDetails.from_record(r) for r in records]
            return sorted(history, key=_sort_key, reverse=True)
        except Exception:
            self._log.exception("スキャン履歴の取得に失敗しました")
            return []


def create_history_store(config: ScanConfig) -> HistoryStore:
    """Build the history store; ``history.remote = false`` keeps it local only."""
    remote = None
    if config.history.remote:
        remote = FirestoreScanHistory(
            collection=config.firebase.collection,
            credentials_path=config.firebase.credentials_path,
            project_id=config.firebase.project_id,
        )
    return HistoryStore(remote, LocalScanHistoryDB(config.history.db_path))
