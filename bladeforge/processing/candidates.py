"""
Candidate layers for the blade and handle roles.
"""

from typing import Iterable, List, Optional, Sequence
import logging

from ..host.base import HostDocument
from ..host.models import LayerKind, LayerRef

logger = logging.getLogger(__name__)


def candidate_layers(layers: Sequence[LayerRef]) -> List[LayerRef]:
    """Layers that can take an adjustment pipeline: no groups, adjustments or empty layers."""
    return [
        layer for layer in layers
        if layer.kind != LayerKind.ADJUSTMENT and layer.is_valid_target
    ]


async def list_candidates(document: HostDocument) -> List[LayerRef]:
    """
    List candidate layers of a document.

    When exactly one active layer is a group (or artboard), only its
    children are considered.
    """
    layers = await document.list_layers()
    active = await document.active_layers()
    if len(active) == 1 and active[0].is_group:
        logger.debug(f"Scoping candidates to group {active[0].id} ('{active[0].name}')")
        layers = await document.child_layers(active[0].id)
    return candidate_layers(layers)


def guess_role_layer(candidates: Iterable[LayerRef],
                     keywords: Iterable[str]) -> Optional[LayerRef]:
    """First candidate whose name contains one of the keywords, case-insensitive."""
    keywords = [keyword.lower() for keyword in keywords]
    for layer in candidates:
        name = (layer.name or "").lower()
        if any(keyword in name for keyword in keywords):
            return layer
    return None
