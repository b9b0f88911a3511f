"""
Adjustment descriptors and the applier that turns them into host operations.
"""

from .models import AdjustmentDescriptor, AdjustmentKind, AdjustmentPipeline, ColorChannel
from .applier import AdjustmentApplier

__all__ = [
    'AdjustmentDescriptor',
    'AdjustmentKind',
    'AdjustmentPipeline',
    'ColorChannel',
    'AdjustmentApplier',
]
