"""
Host document abstraction for BladeForge.

The adjustment engine never touches pixels, curves or shadows itself. It
issues operations against a host document through this interface and lets
the host do the rendering. Every operation is a coroutine because a host
may suspend while it performs the document mutation.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence, Tuple
import logging

from .models import LayerRef, DropShadow, Placement

logger = logging.getLogger(__name__)


class HostError(Exception):
    """Base exception for host document operations."""
    pass


class HostLayerNotFound(HostError):
    """Raised when a layer id does not resolve in the document."""
    pass


class HostOperationFailed(HostError):
    """Raised when the host rejects or cannot complete an operation."""
    pass


class HostDocument(ABC):
    """Document operations the adjustment engine relies on."""

    @property
    @abstractmethod
    def id(self) -> int:
        """Document identity, used to key history suspension."""
        pass

    @abstractmethod
    async def list_layers(self) -> List[LayerRef]:
        """List top-level layers from top to bottom."""
        pass

    @abstractmethod
    async def get_layer(self, layer_id: int) -> Optional[LayerRef]:
        """Resolve a layer id anywhere in the document, or None."""
        pass

    @abstractmethod
    async def active_layers(self) -> List[LayerRef]:
        """Layers currently selected in the document."""
        pass

    @abstractmethod
    async def child_layers(self, group_id: int) -> List[LayerRef]:
        """Children of a group, top to bottom."""
        pass

    @abstractmethod
    async def create_hue_saturation_layer(self, saturation: float,
                                          channel: str = "master") -> LayerRef:
        """Create a hue/saturation adjustment layer above the active layer."""
        pass

    @abstractmethod
    async def create_curves_layer(self, points: Sequence[Tuple[int, int]]) -> LayerRef:
        """Create a curves adjustment layer with the given control points."""
        pass

    @abstractmethod
    async def create_brightness_contrast_layer(self, brightness: float,
                                               contrast: float) -> LayerRef:
        """Create a brightness/contrast adjustment layer."""
        pass

    @abstractmethod
    async def move_layer(self, layer_id: int, relative_to: int,
                         placement: Placement = Placement.PLACE_ABOVE) -> None:
        """Reposition a layer relative to another one."""
        pass

    @abstractmethod
    async def set_clipped(self, layer_id: int, clipped: bool = True) -> None:
        """Set the clip-to-layer-below flag."""
        pass

    @abstractmethod
    async def apply_filter(self, layer_id: int, filter_name: str, **params: Any) -> None:
        """Apply a named filter directly to a layer's pixels."""
        pass

    @abstractmethod
    async def select_layers(self, layer_ids: Sequence[int]) -> None:
        """Replace the document selection with the given layers."""
        pass

    @abstractmethod
    async def group_selection(self) -> LayerRef:
        """Merge the current selection into a new group and return it."""
        pass

    @abstractmethod
    async def set_layer_effect(self, layer_id: int, effect: DropShadow) -> None:
        """Attach a layer-level effect to a layer or group."""
        pass


class HistoryControl(ABC):
    """History suspension pair of the host, keyed by document identity."""

    @abstractmethod
    async def suspend_history(self, document_id: int, name: str) -> Any:
        """
        Start collapsing document changes into one history entry.

        Returns:
            Opaque token to pass to resume_history
        """
        pass

    @abstractmethod
    async def resume_history(self, token: Any) -> None:
        """
        Close a suspension scope, recording its changes as one history entry.

        Args:
            token: Token returned by suspend_history
        """
        pass
