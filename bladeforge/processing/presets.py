"""
Fixed adjustment pipelines for knife product shots.

Pipelines are plain immutable data; the runner executes whatever it is
given, in the order given.
"""

from types import MappingProxyType
from typing import Mapping, Tuple

from .adjustments.models import AdjustmentDescriptor, AdjustmentPipeline, ColorChannel
from ..host.models import DropShadow

BLADE = "blade"
HANDLE = "handle"

ROLE_ORDER: Tuple[str, ...] = (BLADE, HANDLE)

BLADE_PIPELINE: AdjustmentPipeline = (
    AdjustmentDescriptor.desaturate(-100),
    AdjustmentDescriptor.curve_map([(137, 153), (71, 64)]),
    AdjustmentDescriptor.brightness_contrast(brightness=8, contrast=2),
    AdjustmentDescriptor.noise_reduction(radius=1, threshold=10),
    AdjustmentDescriptor.sharpen(amount=100, radius=1.0, threshold=5),
)

HANDLE_PIPELINE: AdjustmentPipeline = (
    AdjustmentDescriptor.curve_map([(75, 58), (135, 123)]),
    AdjustmentDescriptor.channel_saturation(ColorChannel.BLUES, -100),
)

KNIFE_PIPELINES: Mapping[str, AdjustmentPipeline] = MappingProxyType({
    BLADE: BLADE_PIPELINE,
    HANDLE: HANDLE_PIPELINE,
})

KNIFE_SHADOW = DropShadow(
    blend_mode="multiply",
    color=(0, 0, 0),
    opacity=35,
    angle=120,
    use_global_angle=True,
    distance=10,
    spread=5,
    size=10,
)

DEFAULT_HISTORY_NAME = "Knife Adjustments"

# Name fragments used to guess which layer plays which role
DEFAULT_ROLE_KEYWORDS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    BLADE: ("lâmina", "lamina", "blade"),
    HANDLE: ("cabo", "handle"),
})
