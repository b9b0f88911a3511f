"""
Adjustment orchestration for BladeForge

Includes the pipeline runner, grouping stage, history transactions and the
fixed knife pipelines.
"""

from .pipeline import PipelineRunner, RoleBinding
from .grouping import GroupingStage
from .transaction import scoped_resource, history_transaction, run_atomic
from .orchestrator import apply_pipeline, resolve_binding, KnifeAdjuster, PipelineResult

__all__ = [
    "PipelineRunner",
    "RoleBinding",
    "GroupingStage",
    "scoped_resource",
    "history_transaction",
    "run_atomic",
    "apply_pipeline",
    "resolve_binding",
    "KnifeAdjuster",
    "PipelineResult",
]
