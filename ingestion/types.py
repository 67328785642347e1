"""
Ingestion - Result Types.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

from analysis_engine.types import AnalysisResult
from core.context import TradingContext
from risk_validation.types import ValidationReport
from timeframes.types import TimeframeHierarchy
from uploads.types import StoredFile


EXECUTION_INSTRUCTIONS = "Submit execution screenshots after the trade to analyze execution quality"


@dataclass
class IngestionResult:
    """Outcome of a successful pre-trade upload."""

    trade_id: str
    execution_token: str
    timestamp: datetime
    week_number: int
    year: int
    context: TradingContext
    hierarchy: TimeframeHierarchy
    analysis: AnalysisResult
    validation: ValidationReport
    stored_files: List[StoredFile] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        analysis = self.analysis.to_dict()
        return {
            "trade_id": self.trade_id,
            "timestamp": self.timestamp.isoformat(),
            "trade_phase": "pre_trade",
            "timeframes_analyzed": [f.label for f in self.stored_files],
            "trading_context": self.context.to_dict(),
            "completeness_score": self.analysis.completeness_score,
            "hierarchy_analysis": {
                "timeframe_hierarchy": self.hierarchy.to_dict(),
                "analysis_strategy": self.analysis.strategy,
            },
            "file_info": {f.label: f.to_dict() for f in self.stored_files},
            "analysis": analysis,
            "planned_prices": {
                "entry": self.analysis.planned_entry,
                "stop": self.analysis.planned_stop,
                "target": self.analysis.planned_target,
            },
            "compliance_check": {
                "risk_amount": self.analysis.risk_amount,
                "within_limits": self.validation.valid,
                "session_timing": self.analysis.session_timing,
                "validation_results": self.validation.to_dict(),
            },
            "specialization": self.analysis.specialization,
            "execution_flow": {
                "awaiting_execution": True,
                "execution_token": self.execution_token,
                "instructions": EXECUTION_INSTRUCTIONS,
            },
            "context": {
                "week_number": self.week_number,
                "year": self.year,
                "trades_this_week": self.context.trades_this_week,
            },
        }
