"""Product identification and nutrition estimation from a photo."""

from __future__ import annotations

import logging

from .extractor import extract_description, extract_nutrition, extract_product_name
from .media import MediaUploader
from .models import UNKNOWN_PRODUCT, ProductAnalysis
from .resilience import ResilientExecutor, make_cache_key
from .vision import VisionBackend

ANALYSIS_FAILED_DESCRIPTION = (
    "Unable to analyze the product image at this time. Please try again later."
)

SYSTEM_PROMPT = """\
You are an expert product identification assistant specializing in food products.
Your task is to analyze images of food products and provide detailed, accurate nutritional information.

For each image:
1. Identify the exact product name and brand (be specific)
2. Provide a brief description of the product
3. Focus on extracting detailed nutritional information, particularly:
   - Calories (per serving)
   - Fat content (total, saturated, and trans fats if visible)
   - Carbohydrates (total, sugar, and fiber if visible)
   - Protein content
   - Serving size information

Format your response with clear section headings:
- Product Name: [Full product name with brand]
- Description: [Brief description]
- Nutritional Information:
  - Calories: [value]
  - Fats: [value]
  - Carbohydrates: [value]
  - Proteins: [value]

If exact nutritional information isn't visible, make your best estimate based on similar products, and indicate when you're making an estimate.
BE PRECISE WITH NUMBERS - users will rely on this information for health tracking.
"""

USER_PROMPT = (
    "What product is shown in this image? Please identify it and provide complete "
    "nutritional information focusing on calories, protein, carbs and fats."
)


def unknown_product() -> ProductAnalysis:
    return ProductAnalysis(
        product_name=UNKNOWN_PRODUCT,
        description=ANALYSIS_FAILED_DESCRIPTION,
        nutritional_info=None,
    )


def parse_analysis(text: str) -> ProductAnalysis:
    """Turn the model's free-text reply into structured fields."""
    return ProductAnalysis(
        product_name=extract_product_name(text),
        description=extract_description(text),
        nutritional_info=extract_nutrition(text),
    )


class ProductAnalyzer:
    """Upload a product photo, ask the vision model about it, parse the reply."""

    def __init__(
        self,
        backend: VisionBackend,
        uploader: MediaUploader,
        executor: ResilientExecutor | None = None,
        *,
        timeout: float | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._backend = backend
        self._uploader = uploader
        self._executor = executor or ResilientExecutor()
        self._timeout = timeout
        self._log = logger or logging.getLogger(__name__)

    async def analyze_product_image(self, image_uri: str) -> ProductAnalysis:
        """Identify the product in ``image_uri``.

        Never raises: any failure (missing credential, exhausted retries,
        unreadable file) yields the "Unknown Product" sentinel.
        """
        try:
            self._backend.require_credentials()
            text = await self._executor.execute(
                self._request(image_uri),
                cache_key=make_cache_key("analyze_product_image", image_uri),
                timeout=self._timeout,
            )
            self._log.info("Vision API の応答を受信しました")
            return parse_analysis(text)
        except Exception:
            self._log.exception("商品画像の解析に失敗しました: %s", image_uri)
            return unknown_product()

    def _request(self, image_uri: str):
        image_url: str | None = None

        async def call() -> str:
            nonlocal image_url
            # Upload once; retries only repeat the model call
            if image_url is None:
                self._log.info("画像をアップロード中...")
                image_url = await self._uploader.upload_image(image_uri)
            self._log.info("Vision API に画像を送信中...")
            return await self._backend.complete(SYSTEM_PROMPT, USER_PROMPT, image_url)

        return call
