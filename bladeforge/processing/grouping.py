"""
Grouping & effect stage: collapses the adjusted layers into one group and
gives the group a drop shadow.
"""

from typing import List, Sequence
import logging

from ..errors import EffectApplyFailed, GroupingFailed
from ..host.base import HostDocument, HostError
from ..host.models import DropShadow, LayerRef

logger = logging.getLogger(__name__)


class GroupingStage:
    """Groups processed layers and shades the resulting group."""

    def __init__(self, document: HostDocument):
        self.document = document

    async def group_and_shade(self, layers: Sequence[LayerRef], effect: DropShadow,
                              constructs: Sequence[LayerRef] = ()) -> LayerRef:
        """
        Group the given layers with their adjustment stacks.

        Args:
            layers: Role targets to group, at least two
            effect: Shadow applied to the new group
            constructs: Adjustment layers stacked above the targets

        Returns:
            The new group
        """
        targets = await self._resolve_targets(layers)
        if len(targets) < 2:
            raise GroupingFailed(
                f"Need at least 2 valid layers to group, got {len(targets)}"
            )

        member_ids = [layer.id for layer in targets]
        for construct in constructs:
            if construct.id not in member_ids and await self.document.get_layer(construct.id) is not None:
                member_ids.append(construct.id)

        try:
            await self.document.select_layers(member_ids)
            group = await self.document.group_selection()
        except HostError as e:
            raise GroupingFailed(f"Could not group layers {member_ids}: {e}") from e

        logger.info(f"Grouped {len(member_ids)} layers into group {group.id}")

        try:
            await self.document.set_layer_effect(group.id, effect)
        except HostError as e:
            raise EffectApplyFailed(f"Could not apply drop shadow to group {group.id}: {e}") from e

        logger.debug(f"Applied {effect.blend_mode} drop shadow to group {group.id}")
        return group

    async def _resolve_targets(self, layers: Sequence[LayerRef]) -> List[LayerRef]:
        targets = []
        seen = set()
        for layer in layers:
            if layer.id in seen:
                continue
            current = await self.document.get_layer(layer.id)
            if current is None or not current.is_valid_target:
                logger.warning(f"Skipping layer {layer.id} ('{layer.name}'): not a valid group member")
                continue
            seen.add(layer.id)
            targets.append(current)
        return targets
