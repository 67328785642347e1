"""
Analysis Engine Package.

Vision provider requests, provider output repair, deterministic
fallback and execution review.
"""

from .fallback import synthesize_execution_fallback, synthesize_fallback
from .json_extraction import extract_json_object
from .orchestrator import AnalysisOrchestrator, apply_specialization_adjustments
from .price_extraction import PriceLevels
from .provider import AnthropicVisionProvider, Attachment, VisionProvider, load_attachment
from .types import AnalysisResult, AnalysisSource, ExecutionAnalysis, TimeframeAnalysis

__all__ = [
    "AnalysisOrchestrator",
    "AnalysisResult",
    "AnalysisSource",
    "AnthropicVisionProvider",
    "Attachment",
    "ExecutionAnalysis",
    "PriceLevels",
    "TimeframeAnalysis",
    "VisionProvider",
    "apply_specialization_adjustments",
    "extract_json_object",
    "load_attachment",
    "synthesize_execution_fallback",
    "synthesize_fallback",
]
