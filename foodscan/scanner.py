"""End-to-end scan: analyze the photo, check recalls, save to history."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

from .analysis import ProductAnalyzer
from .history import HistoryStore, create_history_store
from .media import MediaUploader
from .models import ProductAnalysis, ProductDetails, RecallInfo
from .recall import RecallChecker, unverified_recall
from .resilience import ResilientExecutor, ResponseCache
from .storage import create_store
from .vision import create_backend

if TYPE_CHECKING:
    from .config import ScanConfig

NO_DESCRIPTION = "No description available"


@dataclass
class ScanResult:
    analysis: ProductAnalysis
    recall_info: RecallInfo
    details: ProductDetails
    saved: bool = False

    def to_dict(self) -> dict:
        return {
            **self.analysis.to_dict(),
            "recallInfo": self.recall_info.to_dict(),
            "imageUri": self.details.image_uri,
            "scanDate": self.details.scan_date.isoformat(),
            "saved": self.saved,
        }


class ScanService:
    def __init__(
        self,
        analyzer: ProductAnalyzer,
        recall_checker: RecallChecker,
        history: HistoryStore,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        logger: logging.Logger | None = None,
    ) -> None:
        self._analyzer = analyzer
        self._recall_checker = recall_checker
        self._history = history
        self._clock = clock
        self._log = logger or logging.getLogger(__name__)

    async def process_image(self, image_uri: str, user_id: str | None = None) -> ScanResult:
        """Identify the product, look up its recall status and record the scan.

        The history is only written when ``user_id`` is given.
        """
        analysis = await self._analyzer.analyze_product_image(image_uri)

        try:
            recall_info = await self._recall_checker.verify(analysis.product_name)
        except Exception as e:
            self._log.error("リコール状況の確認に失敗しました: %s", e)
            recall_info = unverified_recall(analysis.product_name)

        details = ProductDetails(
            recall_info=recall_info,
            scan_date=self._clock(),
            nutritional_info=analysis.nutritional_info,
            description=analysis.description or NO_DESCRIPTION,
            image_uri=image_uri,
        )

        saved = False
        if user_id:
            await self._history.save(user_id, details)
            saved = True

        return ScanResult(
            analysis=analysis,
            recall_info=recall_info,
            details=details,
            saved=saved,
        )


def create_scan_service(config: ScanConfig) -> ScanService:
    """Wire the analyzer, recall checker and history store from configuration."""
    res = config.resilience
    executor = ResilientExecutor(
        ResponseCache(ttl=res.cache_ttl),
        max_retries=res.max_retries,
        max_backoff=res.max_backoff,
    )
    uploader = MediaUploader(
        create_store(config),
        prefix=config.storage.prefix,
        max_bytes=config.storage.max_bytes,
    )
    analyzer = ProductAnalyzer(
        create_backend(config), uploader, executor, timeout=res.timeout
    )
    return ScanService(analyzer, RecallChecker(), create_history_store(config))
