"""OpenAI chat completions vision backend."""

from __future__ import annotations

from . import VisionBackend

MAX_TOKENS = 800
TEMPERATURE = 0.1


class OpenAIVisionBackend(VisionBackend):
    """Identify products using an OpenAI vision-capable chat model."""

    name = "OpenAI"

    def __init__(self, api_key: str = "", model: str = "gpt-4o") -> None:
        super().__init__(api_key=api_key, model=model)

    async def complete(self, system_prompt: str, user_text: str, image_url: str) -> str:
        self.require_credentials()

        try:
            import openai
        except ImportError:
            raise ImportError(
                "openai SDK is required: pip install openai"
            ) from None

        client = openai.AsyncOpenAI(api_key=self._api_key)
        response = await client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": system_prompt},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": user_text},
                        {"type": "image_url", "image_url": {"url": image_url}},
                    ],
                },
            ],
            max_tokens=MAX_TOKENS,
            temperature=TEMPERATURE,
        )

        if not response.choices:
            return ""
        return (response.choices[0].message.content or "").strip()
