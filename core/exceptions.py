"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines all custom exceptions for the trade journal.

- Provides clear exception hierarchy
- Distinguishes recoverable provider failures from caller errors
- Carries context for debugging and API mapping

============================================================
EXCEPTION HIERARCHY
============================================================
JournalException (base)
├── ConfigurationError
├── InputValidationError
│   ├── TimeframeLabelError
│   └── UploadValidationError
├── ProviderError
│   ├── ProviderAuthError
│   ├── ProviderTransientError
│   └── ProviderResponseError
├── StateMachineError
│   ├── TokenMismatchError
│   ├── PhaseConflictError
│   ├── OutcomeSettledError
│   └── InvalidTransitionError
├── TradeNotFoundError
└── PersistenceError

============================================================
PROPAGATION
============================================================
- Input validation and state machine errors: local, never retried
- Provider errors: absorbed by the deterministic fallback
- Persistence errors: surface to caller after file cleanup

============================================================
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================
# SEVERITY LEVELS
# ============================================================

class Severity(Enum):
    """Exception severity levels."""

    LOW = "low"
    """Minor issue, informational."""

    MEDIUM = "medium"
    """Moderate issue, requires attention."""

    HIGH = "high"
    """Serious issue, request cannot complete."""

    CRITICAL = "critical"
    """Critical issue, requires immediate action."""


# ============================================================
# ERROR CLASSIFICATION
# ============================================================

class ErrorClassification(Enum):
    """Classification of error recoverability."""

    RECOVERABLE = "recoverable"
    """Error can be recovered from automatically."""

    TRANSIENT = "transient"
    """Temporary error, a later attempt may succeed."""

    NON_RECOVERABLE = "non_recoverable"
    """Permanent error, requires caller intervention."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class JournalException(Exception):
    """
    Base exception for all trade journal errors.

    All exceptions carry:
    - severity: for alerting
    - context: for debugging
    - classification: for error handling decisions
    - timestamp: when the error occurred
    """

    default_severity: Severity = Severity.MEDIUM
    default_classification: ErrorClassification = ErrorClassification.RECOVERABLE
    status_code: int = 500

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        classification: Optional[ErrorClassification] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.context = context or {}
        self.classification = classification or self.default_classification
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    @property
    def is_recoverable(self) -> bool:
        """Check if error is recoverable."""
        return self.classification in (
            ErrorClassification.RECOVERABLE,
            ErrorClassification.TRANSIENT,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging/API responses."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "classification": self.classification.value,
            "status_code": self.status_code,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(JournalException):
    """Error in configuration."""

    default_severity = Severity.HIGH
    default_classification = ErrorClassification.NON_RECOVERABLE

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        actual_value: Optional[Any] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if config_key:
            context["config_key"] = config_key
        if actual_value is not None:
            context["actual_value"] = str(actual_value)[:100]

        super().__init__(message, context=context, **kwargs)


# ============================================================
# INPUT VALIDATION ERRORS
# ============================================================

class InputValidationError(JournalException):
    """Caller supplied invalid input. No state was created."""

    default_severity = Severity.LOW
    default_classification = ErrorClassification.NON_RECOVERABLE
    status_code = 400

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if field:
            context["field"] = field
        if value is not None:
            context["value"] = str(value)[:100]

        super().__init__(message, context=context, **kwargs)


class TimeframeLabelError(InputValidationError):
    """Timeframe label has invalid syntax."""

    def __init__(self, label: Any, reason: str):
        super().__init__(
            message=f"Invalid timeframe label '{label}': {reason}",
            field="timeframe",
            value=label,
            context={"reason": reason},
        )
        self.label = label


class UploadValidationError(InputValidationError):
    """Upload batch is malformed (file count, type, size, primary)."""
    pass


# ============================================================
# PROVIDER ERRORS
# ============================================================

class ProviderError(JournalException):
    """
    Base class for vision provider failures.

    Never surfaced to callers: the analysis engine converts every
    ProviderError into a deterministic fallback analysis.
    """

    default_severity = Severity.MEDIUM
    default_classification = ErrorClassification.TRANSIENT
    status_code = 502

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if provider:
            context["provider"] = provider

        super().__init__(message, context=context, **kwargs)
        self.provider = provider


class ProviderAuthError(ProviderError):
    """Authentication or configuration problem with the provider."""

    default_severity = Severity.HIGH
    default_classification = ErrorClassification.NON_RECOVERABLE


class ProviderTransientError(ProviderError):
    """Timeout, connection failure, rate limit or server error."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if status_code is not None:
            context["upstream_status"] = status_code

        super().__init__(message, provider=provider, context=context, **kwargs)
        self.upstream_status = status_code


class ProviderResponseError(ProviderError):
    """Provider answered, but no JSON object could be extracted."""

    def __init__(
        self,
        message: str,
        raw_excerpt: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if raw_excerpt:
            context["raw_excerpt"] = raw_excerpt[:200]

        super().__init__(message, context=context, **kwargs)


# ============================================================
# STATE MACHINE ERRORS
# ============================================================

class StateMachineError(JournalException):
    """Trade lifecycle violation. No mutation occurred."""

    default_severity = Severity.MEDIUM
    default_classification = ErrorClassification.NON_RECOVERABLE
    status_code = 409

    def __init__(
        self,
        message: str,
        trade_id: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if trade_id:
            context["trade_id"] = trade_id

        super().__init__(message, context=context, **kwargs)
        self.trade_id = trade_id


class TokenMismatchError(StateMachineError):
    """Execution token does not match the pre-trade record."""

    status_code = 401

    def __init__(self, trade_id: str):
        super().__init__(
            message="Invalid execution token",
            trade_id=trade_id,
        )


class PhaseConflictError(StateMachineError):
    """Trade is no longer in the phase required for the operation."""

    def __init__(
        self,
        trade_id: str,
        current_phase: Optional[str] = None,
        expected_phase: Optional[str] = None,
    ):
        context = {}
        if current_phase:
            context["current_phase"] = current_phase
        if expected_phase:
            context["expected_phase"] = expected_phase

        super().__init__(
            message=(
                f"Trade {trade_id} is not in phase {expected_phase or 'pre_trade'}"
                + (f" (current: {current_phase})" if current_phase else "")
            ),
            trade_id=trade_id,
            context=context,
        )
        self.current_phase = current_phase


class OutcomeSettledError(StateMachineError):
    """Trade outcome was already settled to a different value."""

    def __init__(self, trade_id: str, settled: str, requested: str):
        super().__init__(
            message=f"Trade {trade_id} outcome already settled as {settled}, cannot report {requested}",
            trade_id=trade_id,
            context={"settled_outcome": settled, "requested_outcome": requested},
        )
        self.settled = settled
        self.requested = requested


class InvalidTransitionError(StateMachineError):
    """Transition not present in the phase transition table."""

    def __init__(self, from_phase: str, to_phase: str, reason: str):
        super().__init__(
            message=f"Invalid phase transition {from_phase} -> {to_phase}: {reason}",
            context={"from_phase": from_phase, "to_phase": to_phase, "reason": reason},
        )


class TradeNotFoundError(JournalException):
    """Referenced trade does not exist."""

    default_severity = Severity.LOW
    default_classification = ErrorClassification.NON_RECOVERABLE
    status_code = 404

    def __init__(self, trade_id: str):
        super().__init__(
            message=f"Trade {trade_id} not found",
            context={"trade_id": trade_id},
        )
        self.trade_id = trade_id


# ============================================================
# PERSISTENCE ERRORS
# ============================================================

class PersistenceError(JournalException):
    """Storage failure. Files created by the same request are cleaned up first."""

    default_severity = Severity.HIGH
    default_classification = ErrorClassification.TRANSIENT

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if operation:
            context["operation"] = operation

        super().__init__(message, context=context, **kwargs)


# ============================================================
# EXCEPTION UTILITIES
# ============================================================

def wrap_exception(
    exc: Exception,
    wrapper_class: type = JournalException,
    message: Optional[str] = None,
    **kwargs,
) -> JournalException:
    """Wrap a standard exception in a JournalException."""
    msg = message or f"{type(exc).__name__}: {exc}"
    return wrapper_class(message=msg, cause=exc, **kwargs)


__all__ = [
    "Severity",
    "ErrorClassification",
    "JournalException",
    "ConfigurationError",
    "InputValidationError",
    "TimeframeLabelError",
    "UploadValidationError",
    "ProviderError",
    "ProviderAuthError",
    "ProviderTransientError",
    "ProviderResponseError",
    "StateMachineError",
    "TokenMismatchError",
    "PhaseConflictError",
    "OutcomeSettledError",
    "InvalidTransitionError",
    "TradeNotFoundError",
    "PersistenceError",
    "wrap_exception",
]
