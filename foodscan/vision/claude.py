"""Claude API vision backend."""

from __future__ import annotations

from . import VisionBackend, parse_data_uri
from .openai import MAX_TOKENS, TEMPERATURE


def _image_block(image_url: str) -> dict:
    inline = parse_data_uri(image_url)
    if inline is not None:
        media_type, data = inline
        return {
            "type": "image",
            "source": {"type": "base64", "media_type": media_type, "data": data},
        }
    return {"type": "image", "source": {"type": "url", "url": image_url}}


class ClaudeVisionBackend(VisionBackend):
    """Identify products using Claude's vision capability."""

    name = "Anthropic"

    def __init__(self, api_key: str = "", model: str = "claude-sonnet-4-5-20250929") -> None:
        super().__init__(api_key=api_key, model=model)

    async def complete(self, system_prompt: str, user_text: str, image_url: str) -> str:
        self.require_credentials()

        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "anthropic SDK is required: pip install anthropic"
            ) from None

        client = anthropic.AsyncAnthropic(api_key=self._api_key)
        response = await client.messages.create(
            model=self._model,
            max_tokens=MAX_TOKENS,
            temperature=TEMPERATURE,
            system=system_prompt,
            messages=[
                {
                    "role": "user",
                    "content": [
                        _image_block(image_url),
                        {"type": "text", "text": user_text},
                    ],
                }
            ],
        )

        if not response.content:
            return ""
        return response.content[0].text.strip()
