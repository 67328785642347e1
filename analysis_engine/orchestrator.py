"""
Analysis Engine - Orchestrator.

============================================================
PURPOSE
============================================================
Turn stored screenshots plus context into a structured trade
assessment, and later into an execution review.

Flow (pre-trade):
1. Analysis strategy and specialization overlay from the hierarchy
2. Prompt + attachments to the vision provider
3. JSON extraction and per-field repair
4. Planned prices from provider fields or commentary
5. Overlay adjustments (confidence, completeness)

Any ProviderError on the way switches to the deterministic
fallback. Nothing raised by the provider path escapes.

============================================================
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

from pydantic import ValidationError

from core.config import JournalConfig
from core.context import TradingContext
from core.exceptions import ProviderError
from specialization import provide_insights
from specialization.types import SpecializationInsights
from timeframes.strategy import generate_analysis_strategy
from timeframes.types import TimeframeHierarchy

from .fallback import synthesize_execution_fallback, synthesize_fallback
from .json_extraction import extract_json_object
from .price_extraction import PriceLevels, extract_from_commentary
from .prompts import build_analysis_prompt, build_execution_prompt
from .provider import AnthropicVisionProvider, Attachment, VisionProvider, load_attachment
from .types import AnalysisResult, ExecutionAnalysis


logger = logging.getLogger(__name__)


EXCELLENT_COMPLETENESS_BONUS = 5

FileRef = Union[str, Path, Any]
"""A path, or a stored file object with a `path` attribute."""


def apply_specialization_adjustments(
    result: AnalysisResult,
    insights: Optional[SpecializationInsights],
) -> AnalysisResult:
    """
    Scale confidence by the overlay multiplier.

    Excellent scalping conditions add a small completeness bonus.
    Without insights the result is returned unchanged.
    """
    if insights is None:
        return result

    update = {
        "confidence_score": min(1.0, result.confidence_score * insights.confidence_multiplier),
        "specialization": insights.to_dict(),
    }
    if insights.rating == "excellent":
        update["completeness_score"] = min(100, result.completeness_score + EXCELLENT_COMPLETENESS_BONUS)

    return result.model_copy(update=update)


def _path_of(ref: FileRef) -> Path:
    return Path(getattr(ref, "path", ref))


class AnalysisOrchestrator:
    """
    Coordinates provider requests with deterministic fallback.
    """

    def __init__(
        self,
        provider: Optional[VisionProvider] = None,
        config: Optional[JournalConfig] = None,
    ):
        self.config = config or JournalConfig()
        self.provider = provider or AnthropicVisionProvider(self.config.provider)

    def _attachments(self, files: Mapping[str, FileRef]) -> List[Attachment]:
        return [
            load_attachment(_path_of(ref), label, self.config.provider.max_file_bytes)
            for label, ref in files.items()
        ]

    def _fill_planned_prices(self, result: AnalysisResult) -> AnalysisResult:
        """Complete planned prices from commentary where the provider left them out."""
        if None not in (result.planned_entry, result.planned_stop, result.planned_target):
            return result

        extracted = extract_from_commentary(
            [result.ai_commentary, *result.specific_observations],
            result.risk_reward_ratio,
        )
        levels = PriceLevels(
            entry=result.planned_entry if result.planned_entry is not None else extracted.entry,
            stop=result.planned_stop if result.planned_stop is not None else extracted.stop,
            target=result.planned_target if result.planned_target is not None else extracted.target,
        )
        levels.project_target(result.risk_reward_ratio)

        return result.model_copy(update={
            "planned_entry": levels.entry,
            "planned_stop": levels.stop,
            "planned_target": levels.target,
        })

    # ---------------------------------------------------------
    # PRE-TRADE
    # ---------------------------------------------------------

    def request_analysis(
        self,
        files: Mapping[str, FileRef],
        trading_context: TradingContext,
        hierarchy: TimeframeHierarchy,
        notes: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> AnalysisResult:
        """
        Produce the pre-trade assessment.

        Args:
            files: timeframe label -> stored screenshot
            trading_context: Caller context
            hierarchy: Resolved hierarchy of the same labels
            notes: Optional trader notes
            timestamp: Setup time for session rating

        Returns:
            AnalysisResult (source=provider or source=fallback)
        """
        settings = self.config.specialization
        strategy = generate_analysis_strategy(
            hierarchy, trading_context.trading_style, tuple(settings.trading_styles),
        )
        insights = provide_insights(hierarchy, trading_context, settings, timestamp)

        try:
            attachments = self._attachments(files)
            prompt = build_analysis_prompt(
                hierarchy, trading_context, self.config.risk, strategy, insights, notes,
            )
            raw = self.provider.analyze(prompt, attachments)
            result = AnalysisResult.from_provider_payload(extract_json_object(raw))
            result = self._fill_planned_prices(result)
            logger.info(
                f"Provider analysis: pattern={result.pattern_type} "
                f"quality={result.setup_quality} rr={result.risk_reward_ratio}"
            )
        except (ProviderError, ValidationError) as e:
            logger.warning(f"Provider analysis failed, using fallback: {type(e).__name__}: {e}")
            result = synthesize_fallback(
                notes,
                hierarchy,
                trading_context,
                self.config.risk,
                point_value=self.config.execution.point_value,
                default_rr=self.config.execution.default_rr,
            )

        result = result.model_copy(update={
            "completeness_score": hierarchy.completeness,
            "strategy": strategy.to_dict(),
        })
        return apply_specialization_adjustments(result, insights)

    # ---------------------------------------------------------
    # EXECUTION
    # ---------------------------------------------------------

    def request_execution_analysis(
        self,
        pre_trade: Mapping[str, Any],
        execution_files: Mapping[str, FileRef],
        execution_notes: Optional[str],
        context: TradingContext,
    ) -> ExecutionAnalysis:
        """
        Review an execution against its pre-trade plan.

        Args:
            pre_trade: Planned fields of the trade (planned_entry,
                planned_stop, planned_target, planned_rr, ...)
            execution_files: label -> stored execution screenshot
            execution_notes: Trader notes about the execution
            context: Trading context

        Returns:
            ExecutionAnalysis (source=provider or source=fallback)
        """
        planned = PriceLevels(
            entry=pre_trade.get("planned_entry"),
            stop=pre_trade.get("planned_stop"),
            target=pre_trade.get("planned_target"),
        )
        planned_rr = pre_trade.get("planned_rr")

        try:
            attachments = self._attachments(execution_files)
            prompt = build_execution_prompt(
                dict(pre_trade), context, list(execution_files), execution_notes,
            )
            raw = self.provider.analyze(prompt, attachments)
            review = ExecutionAnalysis.from_provider_payload(extract_json_object(raw))
            review = review.model_copy(update={
                "actual_entry": review.actual_entry if review.actual_entry is not None else planned.entry,
                "actual_stop": review.actual_stop if review.actual_stop is not None else planned.stop,
                "actual_target": review.actual_target if review.actual_target is not None else planned.target,
            })
            logger.info(
                f"Provider execution review: timing={review.execution_timing} "
                f"grade={review.execution_quality_grade}"
            )
            return review
        except (ProviderError, ValidationError) as e:
            logger.warning(f"Provider execution review failed, using fallback: {type(e).__name__}: {e}")
            return synthesize_execution_fallback(
                planned,
                execution_notes,
                planned_rr=planned_rr,
                default_rr=self.config.execution.default_rr,
            )


__all__ = ["AnalysisOrchestrator", "apply_specialization_adjustments"]
