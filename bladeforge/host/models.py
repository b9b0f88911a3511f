"""
Data models shared between the adjustment engine and its host document.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Any, Tuple
from enum import Enum


class LayerKind(Enum):
    """Layer kinds a host document can report."""
    PIXEL = "pixel"
    SHAPE = "shape"
    TEXT = "text"
    SMART_OBJECT = "smart_object"
    ADJUSTMENT = "adjustment"
    GROUP = "group"


# Layer kinds a pixel filter can run on
FILTERABLE_KINDS = (LayerKind.PIXEL, LayerKind.SMART_OBJECT)


class Placement(Enum):
    """Stack placement relative to another layer."""
    PLACE_ABOVE = "placeAbove"
    PLACE_BELOW = "placeBelow"


@dataclass(frozen=True)
class LayerRef:
    """
    Reference to a layer owned by the host document.

    Only the id identifies the layer; the other fields are metadata cached
    at lookup time.
    """
    id: int
    name: str
    kind: LayerKind = LayerKind.PIXEL
    is_group: bool = False
    has_bounds: bool = True

    @property
    def is_valid_target(self) -> bool:
        """Pipeline targets must be non-group layers with visible content."""
        return not self.is_group and self.kind != LayerKind.GROUP and self.has_bounds

    @property
    def accepts_filters(self) -> bool:
        return self.kind in FILTERABLE_KINDS and self.has_bounds

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'kind': self.kind.value,
            'is_group': self.is_group,
            'has_bounds': self.has_bounds,
        }


@dataclass(frozen=True)
class DropShadow:
    """Declarative drop shadow applied to a group container."""
    blend_mode: str = "multiply"
    color: Tuple[int, int, int] = (0, 0, 0)
    opacity: float = 35.0  # percent
    angle: float = 120.0  # degrees
    use_global_angle: bool = True
    distance: float = 10.0  # pixels
    spread: float = 5.0  # percent
    size: float = 10.0  # pixels
    scale: float = 100.0  # percent

    def __post_init__(self):
        if not 0 <= self.opacity <= 100:
            raise ValueError(f"Shadow opacity {self.opacity} out of range [0, 100]")
        if not 0 <= self.spread <= 100:
            raise ValueError(f"Shadow spread {self.spread} out of range [0, 100]")
        if self.distance < 0 or self.size < 0:
            raise ValueError("Shadow distance and size must be non-negative")
        if len(self.color) != 3 or any(not 0 <= c <= 255 for c in self.color):
            raise ValueError(f"Shadow color {self.color} is not an RGB triple")

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['color'] = list(self.color)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DropShadow':
        values = dict(data)
        if 'color' in values:
            values['color'] = tuple(values['color'])
        return cls(**values)


# Effect specs are drop shadows only for now
EffectSpec = DropShadow
