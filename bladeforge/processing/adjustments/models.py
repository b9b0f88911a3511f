"""
Data models for adjustment descriptors.

A descriptor states the intent of one non-destructive operation. It holds no
reference to a document and is never mutated after construction.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Any, Tuple, Sequence, Mapping
from enum import Enum


class AdjustmentKind(Enum):
    """Operations the applier knows how to issue."""
    DESATURATE = "desaturate"
    CURVE_MAP = "curve_map"
    BRIGHTNESS_CONTRAST = "brightness_contrast"
    CHANNEL_SATURATION = "channel_saturation"
    NOISE_REDUCTION = "noise_reduction"  # Filter, mutates target pixels
    SHARPEN = "sharpen"  # Filter, mutates target pixels

    @property
    def is_filter(self) -> bool:
        """Filters act on the target's pixels instead of adding a layer."""
        return self in (AdjustmentKind.NOISE_REDUCTION, AdjustmentKind.SHARPEN)


class ColorChannel(Enum):
    """Channel selector of a hue/saturation adjustment."""
    MASTER = "master"
    REDS = "reds"
    YELLOWS = "yellows"
    GREENS = "greens"
    CYANS = "cyans"
    BLUES = "blues"
    MAGENTAS = "magentas"


# Host filter names used for filter-type descriptors
FILTER_NAMES = {
    AdjustmentKind.NOISE_REDUCTION: "dustAndScratches",
    AdjustmentKind.SHARPEN: "unsharpMask",
}


@dataclass(frozen=True)
class AdjustmentDescriptor:
    """One adjustment to apply against a target layer."""
    kind: AdjustmentKind
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        params = dict(self.parameters)
        if 'points' in params:
            params['points'] = tuple((int(x), int(y)) for x, y in params['points'])
        # Freeze the parameter mapping so descriptors stay immutable
        object.__setattr__(self, 'parameters', MappingProxyType(params))
        self._validate()

    def __hash__(self):
        return hash((self.kind, tuple(sorted(self.parameters.items()))))

    def get(self, key: str, default: Any = None) -> Any:
        """Get a parameter value with default."""
        return self.parameters.get(key, default)

    @property
    def is_filter(self) -> bool:
        return self.kind.is_filter

    def describe(self) -> str:
        """Short human-readable form, e.g. ``curve_map(points=((137, 153), (71, 64)))``."""
        args = ", ".join(
            f"{key}={value.value if isinstance(value, Enum) else value}"
            for key, value in self.parameters.items()
        )
        return f"{self.kind.value}({args})"

    def to_dict(self) -> Dict[str, Any]:
        params = {}
        for key, value in self.parameters.items():
            if isinstance(value, Enum):
                value = value.value
            elif key == 'points':
                value = [list(point) for point in value]
            params[key] = value
        return {'kind': self.kind.value, 'parameters': params}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AdjustmentDescriptor':
        kind = AdjustmentKind(data['kind'])
        params = dict(data.get('parameters', {}))
        if 'channel' in params:
            params['channel'] = ColorChannel(params['channel'])
        return cls(kind=kind, parameters=params)

    # Constructors

    @classmethod
    def desaturate(cls, saturation: float = -100) -> 'AdjustmentDescriptor':
        """Global (master channel) saturation change, -100 removes all color."""
        return cls(AdjustmentKind.DESATURATE, {'saturation': saturation})

    @classmethod
    def curve_map(cls, points: Sequence[Tuple[int, int]]) -> 'AdjustmentDescriptor':
        """Tone curve through (input, output) control points."""
        return cls(AdjustmentKind.CURVE_MAP, {'points': points})

    @classmethod
    def brightness_contrast(cls, brightness: float = 0,
                            contrast: float = 0) -> 'AdjustmentDescriptor':
        return cls(
            AdjustmentKind.BRIGHTNESS_CONTRAST,
            {'brightness': brightness, 'contrast': contrast}
        )

    @classmethod
    def channel_saturation(cls, channel: ColorChannel,
                           saturation: float) -> 'AdjustmentDescriptor':
        """Saturation change restricted to one color channel."""
        return cls(
            AdjustmentKind.CHANNEL_SATURATION,
            {'channel': ColorChannel(channel), 'saturation': saturation}
        )

    @classmethod
    def noise_reduction(cls, radius: int = 1, threshold: int = 10) -> 'AdjustmentDescriptor':
        """Dust & scratches style median denoise."""
        return cls(
            AdjustmentKind.NOISE_REDUCTION,
            {'radius': radius, 'threshold': threshold}
        )

    @classmethod
    def sharpen(cls, amount: float = 100, radius: float = 1.0,
                threshold: int = 5) -> 'AdjustmentDescriptor':
        """Unsharp mask."""
        return cls(
            AdjustmentKind.SHARPEN,
            {'amount': amount, 'radius': radius, 'threshold': threshold}
        )

    def _validate(self):
        """Validate parameter values for the descriptor kind."""
        valid_ranges = {
            'saturation': (-100.0, 100.0),
            'brightness': (-150.0, 150.0),
            'contrast': (-50.0, 100.0),
            'threshold': (0.0, 255.0),
        }
        required = {
            AdjustmentKind.DESATURATE: ('saturation',),
            AdjustmentKind.CURVE_MAP: ('points',),
            AdjustmentKind.BRIGHTNESS_CONTRAST: ('brightness', 'contrast'),
            AdjustmentKind.CHANNEL_SATURATION: ('channel', 'saturation'),
            AdjustmentKind.NOISE_REDUCTION: ('radius', 'threshold'),
            AdjustmentKind.SHARPEN: ('amount', 'radius', 'threshold'),
        }

        missing = [key for key in required[self.kind] if key not in self.parameters]
        if missing:
            raise ValueError(f"{self.kind.value} is missing parameters: {', '.join(missing)}")

        for key, value in self.parameters.items():
            if key in valid_ranges:
                min_val, max_val = valid_ranges[key]
                if not min_val <= value <= max_val:
                    raise ValueError(
                        f"Adjustment '{key}' value {value} out of range [{min_val}, {max_val}]"
                    )

        if self.kind == AdjustmentKind.CURVE_MAP:
            points = self.parameters['points']
            if len(points) < 2:
                raise ValueError("A curve needs at least two control points")
            inputs = [x for x, _ in points]
            if len(set(inputs)) != len(inputs):
                raise ValueError(f"Curve control points share an input value: {points}")
            for x, y in points:
                if not (0 <= x <= 255 and 0 <= y <= 255):
                    raise ValueError(f"Curve point ({x}, {y}) out of range [0, 255]")

        if self.kind == AdjustmentKind.CHANNEL_SATURATION:
            if not isinstance(self.parameters['channel'], ColorChannel):
                raise ValueError(f"Unknown color channel: {self.parameters['channel']}")

        if self.kind == AdjustmentKind.NOISE_REDUCTION:
            if not 1 <= self.parameters['radius'] <= 100:
                raise ValueError(f"Noise reduction radius {self.parameters['radius']} out of range [1, 100]")

        if self.kind == AdjustmentKind.SHARPEN:
            if not 1 <= self.parameters['amount'] <= 500:
                raise ValueError(f"Sharpen amount {self.parameters['amount']} out of range [1, 500]")
            if not 0.1 <= self.parameters['radius'] <= 1000:
                raise ValueError(f"Sharpen radius {self.parameters['radius']} out of range [0.1, 1000]")


# Pipelines are ordered, immutable tuples of descriptors
AdjustmentPipeline = Tuple[AdjustmentDescriptor, ...]
