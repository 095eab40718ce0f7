from .base import Detector
from .breaking_change import BreakingChangeDetector
from .import_export import ImportExportMismatchDetector
from .signature_mismatch import SignatureMismatchDetector
from .stale_reference import StaleReferenceDetector

__all__ = [
    "Detector",
    "StaleReferenceDetector",
    "SignatureMismatchDetector",
    "ImportExportMismatchDetector",
    "BreakingChangeDetector",
]
