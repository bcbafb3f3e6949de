"""TOML configuration loader for foodscan."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]


@dataclass
class CameraConfig:
    indices: list[int] = field(default_factory=lambda: [0])
    save_dir: str = "/tmp/foodscan"
    warmup_frames: int = 5
    jpeg_quality: int = 90


@dataclass
class OpenAIVisionConfig:
    api_key: str = ""
    model: str = "gpt-4o"


@dataclass
class ClaudeVisionConfig:
    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"


@dataclass
class GeminiVisionConfig:
    api_key: str = ""
    model: str = "gemini-2.0-flash"


@dataclass
class VisionConfig:
    backend: str = "openai"
    openai: OpenAIVisionConfig = field(default_factory=OpenAIVisionConfig)
    claude: ClaudeVisionConfig = field(default_factory=ClaudeVisionConfig)
    gemini: GeminiVisionConfig = field(default_factory=GeminiVisionConfig)


@dataclass
class StorageConfig:
    backend: str = "firebase"
    prefix: str = "food_images"
    max_bytes: int = 5 * 1024 * 1024


@dataclass
class FirebaseConfig:
    credentials_path: str = ""
    project_id: str = ""
    storage_bucket: str = ""
    collection: str = "scanHistory"


@dataclass
class GDriveConfig:
    credentials_path: str = "~/.config/foodscan/gdrive_credentials.json"
    token_path: str = "~/.config/foodscan/gdrive_token.json"
    folder_id: str = ""


@dataclass
class HistoryConfig:
    db_path: str = "~/.config/foodscan/history.db"
    remote: bool = True


@dataclass
class ResilienceConfig:
    max_retries: int = 5
    cache_ttl: float = 24 * 60 * 60
    max_backoff: float = 30.0
    timeout: float | None = None


@dataclass
class ScanConfig:
    user_id: str = ""
    camera: CameraConfig = field(default_factory=CameraConfig)
    vision: VisionConfig = field(default_factory=VisionConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    firebase: FirebaseConfig = field(default_factory=FirebaseConfig)
    gdrive: GDriveConfig = field(default_factory=GDriveConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    resilience: ResilienceConfig = field(default_factory=ResilienceConfig)


def load_config(path: str | Path | None = None) -> ScanConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    Credentials and Firebase settings can be supplied via environment
    variables; a value in the file wins over the environment.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    usr = raw.get("user", {})
    cam = raw.get("camera", {})
    vis = raw.get("vision", {})
    sto = raw.get("storage", {})
    fb = raw.get("firebase", {})
    gdr = raw.get("gdrive", {})
    his = raw.get("history", {})
    res = raw.get("resilience", {})

    openai_cfg = vis.get("openai", {})
    claude_cfg = vis.get("claude", {})
    gemini_cfg = vis.get("gemini", {})

    # Resolve API keys: config file → environment variable
    openai_api_key = openai_cfg.get("api_key", "") or os.environ.get(
        "OPENAI_API_KEY", ""
    )
    claude_api_key = claude_cfg.get("api_key", "") or os.environ.get(
        "ANTHROPIC_API_KEY", ""
    )
    gemini_api_key = gemini_cfg.get("api_key", "") or os.environ.get(
        "GEMINI_API_KEY", ""
    )

    return ScanConfig(
        user_id=usr.get("id", "") or os.environ.get("FOODSCAN_USER_ID", ""),
        camera=CameraConfig(
            indices=cam.get("indices", [0]),
            save_dir=cam.get("save_dir", "/tmp/foodscan"),
            warmup_frames=cam.get("warmup_frames", 5),
            jpeg_quality=cam.get("jpeg_quality", 90),
        ),
        vision=VisionConfig(
            backend=vis.get("backend", "openai"),
            openai=OpenAIVisionConfig(
                api_key=openai_api_key,
                model=openai_cfg.get("model", "gpt-4o"),
            ),
            claude=ClaudeVisionConfig(
                api_key=claude_api_key,
                model=claude_cfg.get("model", "claude-sonnet-4-5-20250929"),
            ),
            gemini=GeminiVisionConfig(
                api_key=gemini_api_key,
                model=gemini_cfg.get("model", "gemini-2.0-flash"),
            ),
        ),
        storage=StorageConfig(
            backend=sto.get("backend", "firebase"),
            prefix=sto.get("prefix", "food_images"),
            max_bytes=sto.get("max_bytes", 5 * 1024 * 1024),
        ),
        firebase=FirebaseConfig(
            credentials_path=fb.get("credentials_path", "")
            or os.environ.get("GOOGLE_APPLICATION_CREDENTIALS", ""),
            project_id=fb.get("project_id", "")
            or os.environ.get("FIREBASE_PROJECT_ID", ""),
            storage_bucket=fb.get("storage_bucket", "")
            or os.environ.get("FIREBASE_STORAGE_BUCKET", ""),
            collection=fb.get("collection", "scanHistory"),
        ),
        gdrive=GDriveConfig(
            credentials_path=gdr.get(
                "credentials_path",
                "~/.config/foodscan/gdrive_credentials.json",
            ),
            token_path=gdr.get(
                "token_path",
                "~/.config/foodscan/gdrive_token.json",
            ),
            folder_id=gdr.get("folder_id", ""),
        ),
        history=HistoryConfig(
            db_path=his.get("db_path", "~/.config/foodscan/history.db"),
            remote=his.get("remote", True),
        ),
        resilience=ResilienceConfig(
            max_retries=res.get("max_retries", 5),
            cache_ttl=res.get("cache_ttl", 24 * 60 * 60),
            max_backoff=res.get("max_backoff", 30.0),
            timeout=res.get("timeout"),
        ),
    )
