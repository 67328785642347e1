"""
Core Module - Configuration.

============================================================
PURPOSE
============================================================
All configuration for the trade journal.

Every heuristic constant used by the analysis pipeline lives
here as a named, documented parameter rather than inline in
the algorithm that consumes it.

============================================================
SOURCES
============================================================
- Environment (.env loaded via python-dotenv): from_env()
- YAML file with nested sections: from_yaml(path)
- Deterministic defaults for tests: for_testing()

============================================================
"""

import os
from dataclasses import dataclass, field
from datetime import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError


DEFAULT_SESSION_TIMEZONE = "America/New_York"


def _parse_clock(value: str, key: str) -> time:
    """Parse 'HH:MM' into a time."""
    try:
        hours, minutes = value.strip().split(":")
        return time(int(hours), int(minutes))
    except ValueError as e:
        raise ConfigurationError(
            f"Expected HH:MM for {key}",
            config_key=key,
            actual_value=value,
            cause=e,
        ) from e


# ============================================================
# RISK RULES
# ============================================================

@dataclass
class RiskRules:
    """
    Fixed trading rules evaluated against every analysis.
    """

    max_risk_per_trade: float = 50.0
    """Maximum dollar risk per trade (MAX_RISK rule)."""

    minimum_rr: float = 2.0
    """Minimum acceptable reward/risk (RISK_REWARD rule)."""

    session_start: time = time(9, 30)
    """Start of the optimal session window, exchange local time."""

    session_end: time = time(10, 15)
    """End of the optimal session window, exchange local time."""

    session_timezone: str = DEFAULT_SESSION_TIMEZONE
    """IANA zone of the session window. Aware timestamps are converted to it."""

    max_trades_per_week: int = 3
    """Weekly trade frequency goal, echoed into the provider prompt."""


# ============================================================
# PROVIDER SETTINGS
# ============================================================

@dataclass
class ProviderSettings:
    """
    Vision analysis provider settings.
    """

    api_key: Optional[str] = None
    """Provider API key. Missing key means every call falls back."""

    model: str = "claude-sonnet-4-20250514"
    """Model identifier."""

    max_tokens: int = 4000
    """Maximum tokens in the provider response."""

    timeout_seconds: float = 60.0
    """Hard timeout for a single provider call."""

    max_file_bytes: int = 20 * 1024 * 1024
    """Largest attachment forwarded to the provider."""


# ============================================================
# EXECUTION THRESHOLDS
# ============================================================

@dataclass
class ExecutionThresholds:
    """
    Thresholds for classifying behavioral execution patterns.

    Variances are actual minus planned, in index points.
    """

    early_entry_points: float = 2.0
    """entry variance above this marks early_entry."""

    late_entry_points: float = 2.0
    """entry variance below the negative of this marks late_entry."""

    stop_tightening_points: float = 2.0
    """stop variance above this marks stop_tightening."""

    target_extension_points: float = 3.0
    """target variance above this marks target_extension."""

    point_value: float = 2.0
    """Dollar value of one index point for one contract."""

    default_rr: float = 2.0
    """Reward/risk assumed when it cannot be computed."""


# ============================================================
# SPECIALIZATION SETTINGS
# ============================================================

@dataclass
class SessionBand:
    """A contiguous window of the trading day with a fixed quality rating."""

    start_hour: float
    """Inclusive start, decimal hours."""

    end_hour: float
    """Exclusive end, decimal hours."""

    quality: str
    """Quality label for the band."""

    risk_adjustment: float
    """Multiplier applied to base risk inside the band."""

    note: str = ""
    """Human-readable description."""


def _default_session_bands() -> List[SessionBand]:
    return [
        SessionBand(9.5, 10.25, "optimal", 1.0, "Opening range, highest liquidity and momentum"),
        SessionBand(10.25, 11.5, "good", 0.85, "Post-open trend development"),
        SessionBand(11.5, 13.0, "fair", 0.7, "Midday chop, reduced follow-through"),
        SessionBand(13.0, 15.0, "acceptable", 0.8, "Afternoon session, selective setups"),
        SessionBand(15.0, 16.0, "good", 0.9, "Power hour, renewed volume"),
    ]


@dataclass
class SpecializationSettings:
    """
    Constants for the instrument-specific scalping overlay.
    """

    instruments: Tuple[str, ...] = ("MNQ",)
    """Instruments the overlay applies to."""

    trading_styles: Tuple[str, ...] = ("mnq_scalping",)
    """Trading styles the overlay applies to."""

    base_risk: float = 50.0
    """Base dollar risk before session adjustment."""

    point_value: float = 2.0
    """Dollar value per point."""

    typical_spread: float = 0.25
    """Typical bid/ask spread in points."""

    average_daily_range: float = 45.0
    """Average daily range in points."""

    contract_range_fraction: float = 0.1
    """Fraction of daily range risked per contract when sizing."""

    stop_buffer_points: float = 0.5
    """Buffer added beyond structural stop levels."""

    default_account_size: float = 67500.0
    """Account size assumed when none is supplied."""

    session_timezone: str = DEFAULT_SESSION_TIMEZONE
    """IANA zone in which session bands are expressed."""

    unknown_session_adjustment: float = 0.8
    """Risk adjustment when session time cannot be parsed."""

    off_hours_adjustment: float = 0.6
    """Risk adjustment outside every configured band."""

    session_bands: List[SessionBand] = field(default_factory=_default_session_bands)
    """Intraday session bands, evaluated in order."""

    session_score_weight: float = 40.0
    """Session contribution to the conditions score."""

    ultra_short_bonus: float = 20.0
    """Bonus for an ultra-short entry timeframe."""

    short_term_bonus: float = 15.0
    """Bonus for a short-term structure timeframe."""

    account_size_tiers: List[Tuple[float, float]] = field(
        default_factory=lambda: [(25000.0, 15.0), (10000.0, 10.0)]
    )
    """(minimum account size, bonus), highest tier first."""

    account_size_floor_bonus: float = 5.0
    """Bonus below every account tier."""

    experience_bonus: float = 10.0
    """Flat experience contribution."""

    rating_thresholds: List[Tuple[float, str]] = field(
        default_factory=lambda: [(80.0, "excellent"), (65.0, "good"), (50.0, "fair")]
    )
    """(minimum score, rating), highest first. Below all: poor."""


# ============================================================
# PROJECTION PARAMETERS
# ============================================================

@dataclass
class ProjectionParameters:
    """
    Heuristic constants for account growth projections.

    These have no documented derivation and are kept adjustable.
    """

    target_balance: float = 951000.0
    """Long-horizon balance target."""

    phase_one_threshold: float = 50000.0
    """Balance at which the deposit schedule switches to phase 2."""

    weekly_deposit_phase_one: float = 1750.0
    """Weekly deposit below the phase threshold."""

    weekly_deposit_phase_two: float = 750.0
    """Weekly deposit above the phase threshold."""

    target_weekly_return: float = 0.75
    """Target weekly return, percent."""

    target_trades_per_week: int = 3
    """Trades per week the weekly target assumes."""

    trades_per_week_estimate: float = 2.5
    """Trades per week used to estimate trades to a milestone."""

    search_iterations: int = 10
    """Iterations of the required-return search."""

    search_step_up: float = 0.1
    """Increment when projected balance falls short."""

    search_step_down: float = 0.05
    """Decrement when projected balance overshoots."""

    search_tolerance: float = 1000.0
    """Balance distance at which the search stops."""

    scenario_weeks: int = 260
    """Projection horizon for scenarios, in weeks."""

    scenario_returns: Dict[str, float] = field(default_factory=lambda: {
        "conservative": 0.5,
        "realistic": 0.75,
        "optimistic": 1.0,
    })
    """Weekly return percent per scenario."""

    confidence_base: float = 0.5
    """Starting value of the confidence heuristic."""

    confidence_adjustments: Dict[str, float] = field(default_factory=lambda: {
        "active_week": 0.1,
        "quality_setups": 0.15,
        "on_pace": 0.2,
        "target_met": 0.05,
        "losing_week": -0.3,
        "weak_setups": -0.1,
    })
    """Additive adjustments to the confidence heuristic."""

    milestones: List[float] = field(default_factory=lambda: [
        5000, 10000, 15000, 20000, 25000, 30000, 40000, 50000,
        75000, 100000, 150000, 200000, 300000, 500000, 750000, 951000,
    ])
    """Ascending balance milestones."""


# ============================================================
# STORAGE SETTINGS
# ============================================================

@dataclass
class StorageSettings:
    """
    Database and file storage settings.
    """

    database_url: str = "sqlite:///ghost_journal.db"
    """SQLAlchemy database URL."""

    upload_dir: str = "uploads"
    """Directory for stored screenshots."""

    max_upload_bytes: int = 10 * 1024 * 1024
    """Largest accepted screenshot upload."""

    max_files_per_upload: int = 10
    """Largest accepted upload batch."""

    navigation_ttl_seconds: int = 86400
    """Lifetime of navigation state entries."""


# ============================================================
# MAIN CONFIGURATION
# ============================================================

@dataclass
class JournalConfig:
    """
    Main configuration for the trade journal.

    Combines all sub-configurations.
    """

    risk: RiskRules = field(default_factory=RiskRules)
    """Trading rules."""

    provider: ProviderSettings = field(default_factory=ProviderSettings)
    """Vision provider settings."""

    execution: ExecutionThresholds = field(default_factory=ExecutionThresholds)
    """Execution pattern thresholds."""

    specialization: SpecializationSettings = field(default_factory=SpecializationSettings)
    """Scalping overlay constants."""

    projection: ProjectionParameters = field(default_factory=ProjectionParameters)
    """Account projection heuristics."""

    storage: StorageSettings = field(default_factory=StorageSettings)
    """Persistence settings."""

    log_level: str = "INFO"
    """Root log level."""

    log_format: str = "text"
    """Log output format (json or text)."""

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "JournalConfig":
        """Load configuration from environment variables (and .env)."""
        load_dotenv(dotenv_path)

        risk = RiskRules(
            max_risk_per_trade=float(os.getenv("MAX_RISK_PER_TRADE", "50")),
            minimum_rr=float(os.getenv("MIN_RISK_REWARD", "2.0")),
            session_start=_parse_clock(os.getenv("SESSION_START", "09:30"), "SESSION_START"),
            session_end=_parse_clock(os.getenv("SESSION_END", "10:15"), "SESSION_END"),
            session_timezone=os.getenv("SESSION_TIMEZONE", DEFAULT_SESSION_TIMEZONE),
            max_trades_per_week=int(os.getenv("MAX_TRADES_PER_WEEK", "3")),
        )
        provider = ProviderSettings(
            api_key=os.getenv("ANTHROPIC_API_KEY"),
            model=os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514"),
            max_tokens=int(os.getenv("ANALYSIS_MAX_TOKENS", "4000")),
            timeout_seconds=float(os.getenv("ANALYSIS_TIMEOUT_SECONDS", "60")),
        )
        execution = ExecutionThresholds(
            point_value=float(os.getenv("POINT_VALUE", "2.0")),
        )
        storage = StorageSettings(
            database_url=os.getenv("DATABASE_URL", "sqlite:///ghost_journal.db"),
            upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
            navigation_ttl_seconds=int(os.getenv("NAVIGATION_TTL_SECONDS", "86400")),
        )
        specialization = SpecializationSettings(
            base_risk=risk.max_risk_per_trade,
            session_timezone=risk.session_timezone,
            point_value=execution.point_value,
            default_account_size=float(os.getenv("DEFAULT_ACCOUNT_SIZE", "67500")),
        )

        return cls(
            risk=risk,
            provider=provider,
            execution=execution,
            specialization=specialization,
            storage=storage,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "JournalConfig":
        """Load configuration from a YAML file. Missing sections keep defaults."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigurationError("YAML root must be a mapping", actual_value=path)

        config = cls()

        if "risk" in data:
            rk = data["risk"]
            config.risk = RiskRules(
                max_risk_per_trade=float(rk.get("max_risk_per_trade", 50.0)),
                minimum_rr=float(rk.get("minimum_rr", 2.0)),
                session_start=_parse_clock(str(rk.get("session_start", "09:30")), "risk.session_start"),
                session_end=_parse_clock(str(rk.get("session_end", "10:15")), "risk.session_end"),
                session_timezone=str(rk.get("session_timezone", DEFAULT_SESSION_TIMEZONE)),
                max_trades_per_week=int(rk.get("max_trades_per_week", 3)),
            )

        if "provider" in data:
            pv = data["provider"]
            config.provider = ProviderSettings(
                api_key=pv.get("api_key"),
                model=pv.get("model", "claude-sonnet-4-20250514"),
                max_tokens=int(pv.get("max_tokens", 4000)),
                timeout_seconds=float(pv.get("timeout_seconds", 60.0)),
                max_file_bytes=int(pv.get("max_file_bytes", 20 * 1024 * 1024)),
            )

        if "execution" in data:
            ex = data["execution"]
            config.execution = ExecutionThresholds(
                early_entry_points=float(ex.get("early_entry_points", 2.0)),
                late_entry_points=float(ex.get("late_entry_points", 2.0)),
                stop_tightening_points=float(ex.get("stop_tightening_points", 2.0)),
                target_extension_points=float(ex.get("target_extension_points", 3.0)),
                point_value=float(ex.get("point_value", 2.0)),
                default_rr=float(ex.get("default_rr", 2.0)),
            )

        if "specialization" in data:
            sp = data["specialization"]
            defaults = SpecializationSettings()
            bands = sp.get("session_bands")
            config.specialization = SpecializationSettings(
                instruments=tuple(sp.get("instruments", defaults.instruments)),
                trading_styles=tuple(sp.get("trading_styles", defaults.trading_styles)),
                base_risk=float(sp.get("base_risk", defaults.base_risk)),
                session_timezone=str(sp.get("session_timezone", config.risk.session_timezone)),
                point_value=float(sp.get("point_value", defaults.point_value)),
                typical_spread=float(sp.get("typical_spread", defaults.typical_spread)),
                average_daily_range=float(sp.get("average_daily_range", defaults.average_daily_range)),
                stop_buffer_points=float(sp.get("stop_buffer_points", defaults.stop_buffer_points)),
                default_account_size=float(sp.get("default_account_size", defaults.default_account_size)),
                session_bands=(
                    [SessionBand(**band) for band in bands] if bands else defaults.session_bands
                ),
            )

        if "projection" in data:
            pj = data["projection"]
            defaults = ProjectionParameters()
            config.projection = ProjectionParameters(
                target_balance=float(pj.get("target_balance", defaults.target_balance)),
                phase_one_threshold=float(pj.get("phase_one_threshold", defaults.phase_one_threshold)),
                weekly_deposit_phase_one=float(pj.get("weekly_deposit_phase_one", defaults.weekly_deposit_phase_one)),
                weekly_deposit_phase_two=float(pj.get("weekly_deposit_phase_two", defaults.weekly_deposit_phase_two)),
                target_weekly_return=float(pj.get("target_weekly_return", defaults.target_weekly_return)),
                search_iterations=int(pj.get("search_iterations", defaults.search_iterations)),
                search_step_up=float(pj.get("search_step_up", defaults.search_step_up)),
                search_step_down=float(pj.get("search_step_down", defaults.search_step_down)),
                search_tolerance=float(pj.get("search_tolerance", defaults.search_tolerance)),
                scenario_weeks=int(pj.get("scenario_weeks", defaults.scenario_weeks)),
                scenario_returns=dict(pj.get("scenario_returns", defaults.scenario_returns)),
                milestones=[float(m) for m in pj.get("milestones", defaults.milestones)],
            )

        if "storage" in data:
            st = data["storage"]
            config.storage = StorageSettings(
                database_url=st.get("database_url", "sqlite:///ghost_journal.db"),
                upload_dir=st.get("upload_dir", "uploads"),
                max_upload_bytes=int(st.get("max_upload_bytes", 10 * 1024 * 1024)),
                max_files_per_upload=int(st.get("max_files_per_upload", 10)),
                navigation_ttl_seconds=int(st.get("navigation_ttl_seconds", 86400)),
            )

        config.log_level = data.get("log_level", config.log_level)
        config.log_format = data.get("log_format", config.log_format)
        return config

    @classmethod
    def for_testing(cls) -> "JournalConfig":
        """Deterministic configuration for tests: no API key, in-memory DB."""
        return cls(
            provider=ProviderSettings(api_key=None, timeout_seconds=5.0),
            storage=StorageSettings(database_url="sqlite://", upload_dir="test_uploads"),
            log_level="DEBUG",
        )

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.risk.max_risk_per_trade <= 0:
            errors.append("max_risk_per_trade must be positive")

        if self.risk.minimum_rr < 0:
            errors.append("minimum_rr must not be negative")

        if self.risk.session_start >= self.risk.session_end:
            errors.append("session_start must be before session_end")

        for zone in sorted({self.risk.session_timezone, self.specialization.session_timezone}):
            try:
                ZoneInfo(zone)
            except (ZoneInfoNotFoundError, ValueError):
                errors.append(f"Unknown session timezone: {zone}")

        if self.provider.timeout_seconds <= 0:
            errors.append("provider timeout_seconds must be positive")

        if self.execution.point_value <= 0:
            errors.append("point_value must be positive")

        if not 1 <= self.storage.max_files_per_upload <= 10:
            errors.append("max_files_per_upload must be between 1 and 10")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Summary safe for logging (no secrets)."""
        return {
            "max_risk_per_trade": self.risk.max_risk_per_trade,
            "minimum_rr": self.risk.minimum_rr,
            "session_window": (
                f"{self.risk.session_start:%H:%M}-{self.risk.session_end:%H:%M} {self.risk.session_timezone}"
            ),
            "provider_model": self.provider.model,
            "provider_configured": bool(self.provider.api_key),
            "point_value": self.execution.point_value,
            "database_url": self.storage.database_url.split("@")[-1],
        }


__all__ = [
    "DEFAULT_SESSION_TIMEZONE",
    "RiskRules",
    "ProviderSettings",
    "ExecutionThresholds",
    "SessionBand",
    "SpecializationSettings",
    "ProjectionParameters",
    "StorageSettings",
    "JournalConfig",
]
