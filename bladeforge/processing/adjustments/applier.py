"""
Adjustment applier.

Turns one AdjustmentDescriptor into host operations: adjustment kinds become
a new adjustment layer placed directly above the current top of the target's
stack and clipped to it; filter kinds run on the target's pixels.
"""

from typing import Awaitable, Callable, Dict, Optional
import logging

from .models import AdjustmentDescriptor, AdjustmentKind, ColorChannel, FILTER_NAMES
from ...errors import ConstructCreationFailed, TargetInvalid
from ...host.base import HostDocument, HostError, HostLayerNotFound
from ...host.models import LayerRef, Placement

logger = logging.getLogger(__name__)


class AdjustmentApplier:
    """Executes adjustment descriptors against a host document."""

    def __init__(self, document: HostDocument):
        self.document = document
        self._creators: Dict[AdjustmentKind, Callable[[AdjustmentDescriptor], Awaitable[LayerRef]]] = {
            AdjustmentKind.DESATURATE: self._create_desaturate,
            AdjustmentKind.CURVE_MAP: self._create_curve_map,
            AdjustmentKind.BRIGHTNESS_CONTRAST: self._create_brightness_contrast,
            AdjustmentKind.CHANNEL_SATURATION: self._create_channel_saturation,
        }

    async def apply(self, descriptor: AdjustmentDescriptor, target: LayerRef,
                    current_top: Optional[LayerRef] = None) -> LayerRef:
        """
        Apply one descriptor.

        Args:
            descriptor: Adjustment to apply
            target: Layer the adjustment is meant for
            current_top: Top of the target's adjustment stack, target if None

        Returns:
            The new top of the target's stack: the created adjustment layer,
            or current_top unchanged for filters
        """
        current_top = current_top or target

        if await self.document.get_layer(target.id) is None:
            raise TargetInvalid(f"Layer {target.id} ('{target.name}') no longer exists")

        if descriptor.is_filter:
            await self._apply_filter(descriptor, target)
            return current_top

        if current_top.id != target.id and await self.document.get_layer(current_top.id) is None:
            raise TargetInvalid(f"Stack top {current_top.id} above '{target.name}' no longer exists")

        try:
            construct = await self._creators[descriptor.kind](descriptor)
        except HostError as e:
            raise ConstructCreationFailed(
                f"Could not create {descriptor.kind.value} for '{target.name}': {e}"
            ) from e

        try:
            await self.document.move_layer(construct.id, current_top.id, Placement.PLACE_ABOVE)
            await self.document.set_clipped(construct.id, True)
        except HostLayerNotFound as e:
            raise TargetInvalid(f"Lost track of '{target.name}' while placing {descriptor.kind.value}: {e}") from e
        except HostError as e:
            raise ConstructCreationFailed(
                f"Could not clip {descriptor.kind.value} to '{target.name}': {e}"
            ) from e

        logger.debug(f"Clipped {descriptor.describe()} as layer {construct.id} above {current_top.id}")
        return construct

    async def _apply_filter(self, descriptor: AdjustmentDescriptor, target: LayerRef) -> None:
        filter_name = FILTER_NAMES[descriptor.kind]
        try:
            await self.document.apply_filter(target.id, filter_name, **dict(descriptor.parameters))
        except HostLayerNotFound as e:
            raise TargetInvalid(f"Layer {target.id} ('{target.name}') no longer exists") from e
        except HostError as e:
            raise ConstructCreationFailed(
                f"Filter {filter_name} failed on '{target.name}': {e}"
            ) from e
        logger.debug(f"Applied {descriptor.describe()} to layer {target.id}")

    async def _create_desaturate(self, descriptor: AdjustmentDescriptor) -> LayerRef:
        return await self.document.create_hue_saturation_layer(
            descriptor.get('saturation'), ColorChannel.MASTER.value
        )

    async def _create_curve_map(self, descriptor: AdjustmentDescriptor) -> LayerRef:
        return await self.document.create_curves_layer(descriptor.get('points'))

    async def _create_brightness_contrast(self, descriptor: AdjustmentDescriptor) -> LayerRef:
        return await self.document.create_brightness_contrast_layer(
            descriptor.get('brightness'), descriptor.get('contrast')
        )

    async def _create_channel_saturation(self, descriptor: AdjustmentDescriptor) -> LayerRef:
        return await self.document.create_hue_saturation_layer(
            descriptor.get('saturation'), descriptor.get('channel').value
        )
