"""
BladeForge: non-destructive knife product shot adjustments

Applies fixed adjustment pipelines to the blade and handle layers of a
document, groups them under a drop shadow, and records the whole run as a
single undo step.
"""

__version__ = "0.1.0"

from .config import load_config
from .errors import (
    ErrorKind,
    PipelineError,
    InputInvalid,
    TargetInvalid,
    ConstructCreationFailed,
    GroupingFailed,
    EffectApplyFailed,
    TransactionFailed,
)
from .processing.orchestrator import apply_pipeline, KnifeAdjuster, PipelineResult

__all__ = [
    "load_config",
    "apply_pipeline",
    "KnifeAdjuster",
    "PipelineResult",
    "ErrorKind",
    "PipelineError",
    "InputInvalid",
    "TargetInvalid",
    "ConstructCreationFailed",
    "GroupingFailed",
    "EffectApplyFailed",
    "TransactionFailed",
]
