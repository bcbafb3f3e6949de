"""Gemini API vision backend."""

from __future__ import annotations

from . import VisionBackend, decode_data_uri


async def _fetch_image(image_url: str) -> tuple[str, bytes]:
    """Return (media type, bytes) for a data URI or a remote URL."""
    inline = decode_data_uri(image_url)
    if inline is not None:
        return inline

    import httpx

    async with httpx.AsyncClient(follow_redirects=True, timeout=30.0) as client:
        resp = await client.get(image_url)
        resp.raise_for_status()
    media_type = resp.headers.get("content-type", "image/jpeg").split(";")[0]
    return media_type, resp.content


class GeminiVisionBackend(VisionBackend):
    """Identify products using Google Gemini's vision capability.

    Gemini takes image bytes rather than URLs, so uploaded images are
    downloaded again before the call.
    """

    name = "Gemini"

    def __init__(self, api_key: str = "", model: str = "gemini-2.0-flash") -> None:
        super().__init__(api_key=api_key, model=model)

    async def complete(self, system_prompt: str, user_text: str, image_url: str) -> str:
        self.require_credentials()

        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError(
                "google-generativeai SDK is required: pip install google-generativeai"
            ) from None

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(self._model, system_instruction=system_prompt)

        media_type, data = await _fetch_image(image_url)
        parts: list = [{"mime_type": media_type, "data": data}, user_text]

        response = await model.generate_content_async(parts)
        return (response.text or "").strip()
