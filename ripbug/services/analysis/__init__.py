from .ast_parser import ParseError
from .config import AnalysisConfig
from .models import AnalysisResult, Finding
from .service import AnalysisService

__all__ = ["AnalysisService", "AnalysisConfig", "AnalysisResult", "Finding", "ParseError"]
