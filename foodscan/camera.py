"""Product photo capture from a USB camera using OpenCV.

Photos are grouped by day under ``save_dir``::

    save_dir/2024-03-01/cereal-box_120501_123456_cam0.jpg
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

DEFAULT_LABEL = "scan"


def _slug(label: str) -> str:
    slug = re.sub(r"[^0-9A-Za-z_-]+", "-", label).strip("-").lower()
    return slug or DEFAULT_LABEL


@dataclass
class CameraCapture:
    camera_index: int
    image_path: str
    captured_at: str  # ISO8601
    label: str = DEFAULT_LABEL


class ProductCamera:
    """Take product photos with locally attached cameras.

    The first ``warmup_frames`` frames are dropped so auto exposure and
    focus can settle on a close-up product label.
    """

    def __init__(
        self,
        camera_indices: list[int] | None = None,
        save_dir: str = "/tmp/foodscan",
        *,
        warmup_frames: int = 5,
        jpeg_quality: int = 90,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._camera_indices = camera_indices or [0]
        self._save_dir = Path(save_dir).expanduser()
        self._save_dir.mkdir(parents=True, exist_ok=True)
        self._warmup_frames = max(warmup_frames, 0)
        self._jpeg_quality = min(max(jpeg_quality, 0), 100)
        self._clock = clock

    def image_path(self, camera_index: int, label: str, taken_at: datetime) -> Path:
        """Where a photo of ``label`` taken at ``taken_at`` is stored."""
        day_dir = self._save_dir / taken_at.strftime("%Y-%m-%d")
        stamp = taken_at.strftime("%H%M%S_%f")
        return day_dir / f"{_slug(label)}_{stamp}_cam{camera_index}.jpg"

    def capture_all(self, label: str = DEFAULT_LABEL) -> list[CameraCapture]:
        """Capture from all configured cameras (e.g. front and back label)."""
        return [self.capture(idx, label) for idx in self._camera_indices]

    def capture_first(self, label: str = DEFAULT_LABEL) -> CameraCapture:
        return self.capture(self._camera_indices[0], label)

    def capture(self, camera_index: int, label: str = DEFAULT_LABEL) -> CameraCapture:
        """Capture a single product photo from the specified camera as JPEG."""
        try:
            import cv2
        except ImportError:
            raise ImportError(
                "opencv-python is required: pip install opencv-python"
            ) from None

        cap = cv2.VideoCapture(camera_index)
        if not cap.isOpened():
            raise RuntimeError(
                f"カメラ {camera_index} を開けませんでした。"
                f"接続を確認してください。"
            )

        try:
            for _ in range(self._warmup_frames):
                cap.grab()

            ret, frame = cap.read()
            if not ret or frame is None:
                raise RuntimeError(
                    f"カメラ {camera_index} からフレームを取得できませんでした。"
                )

            taken_at = self._clock()
            filepath = self.image_path(camera_index, label, taken_at)
            filepath.parent.mkdir(parents=True, exist_ok=True)

            params = [cv2.IMWRITE_JPEG_QUALITY, self._jpeg_quality]
            if not cv2.imwrite(str(filepath), frame, params):
                raise RuntimeError(f"商品画像を保存できませんでした: {filepath}")

            return CameraCapture(
                camera_index=camera_index,
                image_path=str(filepath),
                captured_at=taken_at.isoformat(),
                label=_slug(label),
            )
        finally:
            cap.release()

    @staticmethod
    def list_cameras(max_check: int = 10) -> list[int]:
        """List available USB camera indices by probing."""
        try:
            import cv2
        except ImportError:
            raise ImportError(
                "opencv-python is required: pip install opencv-python"
            ) from None

        available: list[int] = []
        for i in range(max_check):
            cap = cv2.VideoCapture(i)
            if cap.isOpened():
                available.append(i)
            cap.release()
        return available
