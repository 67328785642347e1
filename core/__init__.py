"""
Core Module Package.

This package contains the infrastructure that all other
modules depend on.

Components:
- config: Configuration dataclasses (env / YAML / testing)
- exceptions: Custom exception hierarchy
- log_setup: Root logging configuration
"""

from .config import (
    ExecutionThresholds,
    JournalConfig,
    ProjectionParameters,
    ProviderSettings,
    RiskRules,
    SessionBand,
    SpecializationSettings,
    StorageSettings,
)
from .exceptions import (
    ConfigurationError,
    ErrorClassification,
    InputValidationError,
    InvalidTransitionError,
    JournalException,
    PersistenceError,
    PhaseConflictError,
    OutcomeSettledError,
    ProviderAuthError,
    ProviderError,
    ProviderResponseError,
    ProviderTransientError,
    Severity,
    StateMachineError,
    TimeframeLabelError,
    TokenMismatchError,
    TradeNotFoundError,
    UploadValidationError,
)
from .log_setup import setup_logging

__all__ = [
    "ExecutionThresholds",
    "JournalConfig",
    "ProjectionParameters",
    "ProviderSettings",
    "RiskRules",
    "SessionBand",
    "SpecializationSettings",
    "StorageSettings",
    "ConfigurationError",
    "ErrorClassification",
    "InputValidationError",
    "InvalidTransitionError",
    "JournalException",
    "PersistenceError",
    "PhaseConflictError",
    "OutcomeSettledError",
    "ProviderAuthError",
    "ProviderError",
    "ProviderResponseError",
    "ProviderTransientError",
    "Severity",
    "StateMachineError",
    "TimeframeLabelError",
    "TokenMismatchError",
    "TradeNotFoundError",
    "UploadValidationError",
    "setup_logging",
]
