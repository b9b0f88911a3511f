"""
Error types for BladeForge.

Every failure surfaced to a caller carries a distinguishable kind and a
human-readable detail string.
"""

from enum import Enum


class ErrorKind(Enum):
    """Distinguishable failure kinds reported by the pipeline."""
    INPUT_INVALID = "input_invalid"
    TARGET_INVALID = "target_invalid"
    CONSTRUCT_CREATION_FAILED = "construct_creation_failed"
    GROUPING_FAILED = "grouping_failed"
    EFFECT_APPLY_FAILED = "effect_apply_failed"
    TRANSACTION_FAILED = "transaction_failed"


class PipelineError(Exception):
    """Base exception for adjustment pipeline failures."""

    kind: ErrorKind = None

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.detail}"


class InputInvalid(PipelineError):
    """Raised when layer selections are missing or not distinct."""
    kind = ErrorKind.INPUT_INVALID


class TargetInvalid(PipelineError):
    """Raised when a bound layer is missing or cannot be adjusted."""
    kind = ErrorKind.TARGET_INVALID


class ConstructCreationFailed(PipelineError):
    """Raised when the host cannot create or place an adjustment."""
    kind = ErrorKind.CONSTRUCT_CREATION_FAILED


class GroupingFailed(PipelineError):
    """Raised when the processed layers cannot be grouped."""
    kind = ErrorKind.GROUPING_FAILED


class EffectApplyFailed(PipelineError):
    """Raised when the shadow effect cannot attach to the group."""
    kind = ErrorKind.EFFECT_APPLY_FAILED


class TransactionFailed(PipelineError):
    """Raised when history suspension or resumption fails."""
    kind = ErrorKind.TRANSACTION_FAILED
