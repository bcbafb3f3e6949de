"""Product recall lookup.

This is a stand-in for a real recall database: products are matched against
a fixed list of identifiers.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Iterable

from .models import RecallInfo

logger = logging.getLogger(__name__)

DEFAULT_RECALLED_PRODUCTS = (
    "TestProduct123",
    "5901234123457",
    "Apple Juice Organic",
)

SAMPLE_MANUFACTURER = "Sample Manufacturer"
SAMPLE_LOT_NUMBER = "LOT-2023-1234"
SAMPLE_RECALL_REASON = "Potential contamination with foreign materials"
UNVERIFIED_REASON = "Unable to verify recall status at this time"


class RecallCheckError(RuntimeError):
    pass


def unverified_recall(product_name: str) -> RecallInfo:
    """Neutral status used when the lookup itself fails."""
    return RecallInfo(
        is_recalled=False,
        product_name=product_name,
        recall_reason=UNVERIFIED_REASON,
    )


class RecallChecker:
    def __init__(
        self,
        recalled_products: Iterable[str] = DEFAULT_RECALLED_PRODUCTS,
        *,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._recalled = [p.lower() for p in recalled_products]
        self._today = today

    async def verify(self, product_identifier: str) -> RecallInfo:
        """Check a product name or barcode against the recall list.

        Raises:
            RecallCheckError: If the lookup fails.
        """
        try:
            needle = product_identifier.lower()
            is_recalled = any(p in needle for p in self._recalled)
        except Exception as e:
            raise RecallCheckError(
                "リコール情報の確認に失敗しました"
            ) from e

        if not is_recalled:
            return RecallInfo(is_recalled=False, product_name=product_identifier)

        logger.warning("リコール対象の商品です: %s", product_identifier)
        return RecallInfo(
            is_recalled=True,
            product_name=product_identifier,
            manufacturer=SAMPLE_MANUFACTURER,
            lot_number=SAMPLE_LOT_NUMBER,
            recall_date=self._today().isoformat(),
            recall_reason=SAMPLE_RECALL_REASON,
        )
