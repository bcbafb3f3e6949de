"""Product photo scanning: identification, nutrition estimate, recall check."""

from .analysis import ProductAnalyzer
from .config import (
    FirebaseConfig,
    HistoryConfig,
    ResilienceConfig,
    ScanConfig,
    StorageConfig,
    VisionConfig,
    load_config,
)
from .extractor import extract
from .history import FirestoreScanHistory, HistoryStore, create_history_store
from .media import MediaUploader
from .models import NutritionalInfo, ProductAnalysis, ProductDetails, RecallInfo
from .recall import RecallChecker
from .resilience import ResilientExecutor, ResponseCache, make_cache_key
from .scanner import ScanResult, ScanService, create_scan_service
from .vision import ConfigurationError, VisionBackend, create_backend

__all__ = [
    "ProductAnalyzer",
    "ScanService",
    "ScanResult",
    "create_scan_service",
    "MediaUploader",
    "ResilientExecutor",
    "ResponseCache",
    "make_cache_key",
    "extract",
    "HistoryStore",
    "FirestoreScanHistory",
    "create_history_store",
    "RecallChecker",
    "RecallInfo",
    "NutritionalInfo",
    "ProductDetails",
    "ProductAnalysis",
    "VisionBackend",
    "ConfigurationError",
    "create_backend",
    "ScanConfig",
    "VisionConfig",
    "StorageConfig",
    "FirebaseConfig",
    "HistoryConfig",
    "ResilienceConfig",
    "load_config",
]
