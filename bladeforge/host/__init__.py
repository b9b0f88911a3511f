"""
Host document interfaces for BladeForge

The engine talks to documents through HostDocument and HistoryControl;
InMemoryDocument is a complete host kept in Python objects.
"""

from .base import HostDocument, HistoryControl, HostError, HostLayerNotFound, HostOperationFailed
from .models import LayerRef, LayerKind, Placement, DropShadow, EffectSpec
from .memory import InMemoryDocument, InMemoryHistory, MemoryLayer, SuspensionToken

__all__ = [
    'HostDocument',
    'HistoryControl',
    'HostError',
    'HostLayerNotFound',
    'HostOperationFailed',
    'LayerRef',
    'LayerKind',
    'Placement',
    'DropShadow',
    'EffectSpec',
    'InMemoryDocument',
    'InMemoryHistory',
    'MemoryLayer',
    'SuspensionToken',
]
