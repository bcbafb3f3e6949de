"""Data models for product scans, recall status and nutrition facts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

NOT_AVAILABLE = "Not available"
UNKNOWN_PRODUCT = "Unknown Product"


@dataclass(frozen=True)
class RecallInfo:
    is_recalled: bool
    product_name: str
    manufacturer: str = ""
    lot_number: str = ""
    recall_date: str = ""  # ISO date or ""
    recall_reason: str = ""

    def to_dict(self) -> dict:
        return {
            "isRecalled": self.is_recalled,
            "productName": self.product_name,
            "manufacturer": self.manufacturer,
            "lotNumber": self.lot_number,
            "recallDate": self.recall_date,
            "recallReason": self.recall_reason,
        }

    @classmethod
    def from_dict(cls, data: dict) -> RecallInfo:
        return cls(
            is_recalled=bool(data.get("isRecalled", False)),
            product_name=data.get("productName", ""),
            manufacturer=data.get("manufacturer", ""),
            lot_number=data.get("lotNumber", ""),
            recall_date=data.get("recallDate", ""),
            recall_reason=data.get("recallReason", ""),
        )


@dataclass(frozen=True)
class NutritionalInfo:
    """Free-text nutrition values as returned by the model (not normalized)."""

    calories: str = NOT_AVAILABLE
    fats: str = NOT_AVAILABLE
    carbs: str = NOT_AVAILABLE
    proteins: str = NOT_AVAILABLE

    def to_dict(self) -> dict:
        return {
            "calories": self.calories,
            "fats": self.fats,
            "carbs": self.carbs,
            "proteins": self.proteins,
        }

    @classmethod
    def from_dict(cls, data: dict) -> NutritionalInfo:
        return cls(
            calories=data.get("calories", NOT_AVAILABLE),
            fats=data.get("fats", NOT_AVAILABLE),
            carbs=data.get("carbs", NOT_AVAILABLE),
            proteins=data.get("proteins", NOT_AVAILABLE),
        )


@dataclass(frozen=True)
class ProductDetails:
    """A single saved scan, owned by the user who created it."""

    recall_info: RecallInfo
    scan_date: datetime
    nutritional_info: NutritionalInfo | None = None
    description: str | None = None
    image_uri: str | None = None

    @classmethod
    def from_record(cls, data: dict) -> ProductDetails:
        """Build from a stored document (remote or local)."""
        scan_date = data["scanDate"]
        if isinstance(scan_date, str):
            scan_date = datetime.fromisoformat(scan_date)
        nutrition = data.get("nutritionalInfo")
        return cls(
            recall_info=RecallInfo.from_dict(data.get("recallInfo") or {}),
            scan_date=scan_date,
            nutritional_info=NutritionalInfo.from_dict(nutrition) if nutrition else None,
            description=data.get("description") or None,
            image_uri=data.get("imageUri") or None,
        )

    def to_dict(self) -> dict:
        return {
            "recallInfo": self.recall_info.to_dict(),
            "nutritionalInfo": (
                self.nutritional_info.to_dict() if self.nutritional_info else None
            ),
            "description": self.description,
            "imageUri": self.image_uri,
            "scanDate": self.scan_date.isoformat(),
        }


@dataclass(frozen=True)
class ProductAnalysis:
    product_name: str
    description: str
    nutritional_info: NutritionalInfo | None = None

    @property
    def is_unknown(self) -> bool:
        return self.product_name == UNKNOWN_PRODUCT and self.nutritional_info is None

    def to_dict(self) -> dict:
        return {
            "productName": self.product_name,
            "description": self.description,
            "nutritionalInfo": (
                self.nutritional_info.to_dict() if self.nutritional_info else None
            ),
        }
