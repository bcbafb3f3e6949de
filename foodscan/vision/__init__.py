"""Vision backend base class, errors, and factory."""

from __future__ import annotations

import base64
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..config import ScanConfig

_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.S)


class ConfigurationError(ValueError):
    """A required credential or setting is missing. Never retried."""


def parse_data_uri(uri: str) -> tuple[str, str] | None:
    """Split a base64 ``data:`` URI into (media type, base64 payload)."""
    m = _DATA_URI.match(uri)
    if m is None:
        return None
    return m.group("mime"), m.group("data")


def decode_data_uri(uri: str) -> tuple[str, bytes] | None:
    parsed = parse_data_uri(uri)
    if parsed is None:
        return None
    mime, payload = parsed
    return mime, base64.b64decode(payload)


class VisionBackend(ABC):
    """Abstract base for a vision-capable chat model."""

    name = "vision"

    def __init__(self, api_key: str = "", model: str = "") -> None:
        self._api_key = api_key
        self._model = model

    @property
    def has_credentials(self) -> bool:
        return bool(self._api_key)

    @property
    def model(self) -> str:
        return self._model

    def require_credentials(self) -> None:
        if not self._api_key:
            raise ConfigurationError(
                f"{self.name} APIキーが設定されていません。"
                f"設定ファイルまたは環境変数を確認してください。"
            )

    @abstractmethod
    async def complete(self, system_prompt: str, user_text: str, image_url: str) -> str:
        """Send an instruction, a question and an image; return the reply text.

        ``image_url`` is either a fetchable URL or a base64 ``data:`` URI.
        """
        ...


def create_backend(config: ScanConfig) -> VisionBackend:
    """Create a vision backend based on configuration."""
    backend_name = config.vision.backend

    match backend_name:
        case "openai":
            from .openai import OpenAIVisionBackend

            return OpenAIVisionBackend(
                api_key=config.vision.openai.api_key,
                model=config.vision.openai.model,
            )
        case "claude":
            from .claude import ClaudeVisionBackend

            return ClaudeVisionBackend(
                api_key=config.vision.claude.api_key,
                model=config.vision.claude.model,
            )
        case "gemini":
            from .gemini import GeminiVisionBackend

            return GeminiVisionBackend(
                api_key=config.vision.gemini.api_key,
                model=config.vision.gemini.model,
            )
        case _:
            raise ValueError(
                f"不明なVisionバックエンド: {backend_name!r}  "
                f"(openai / claude / gemini から選択してください)"
            )
