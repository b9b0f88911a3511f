"""
Knife adjustment orchestrator.

The single entry point callers use: validates the two layer selections,
then runs both role pipelines and the grouping stage as one atomic history
step.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional
import logging

from .adjustments.applier import AdjustmentApplier
from .adjustments.models import AdjustmentPipeline
from .grouping import GroupingStage
from .pipeline import PipelineRunner, RoleBinding
from .presets import (
    BLADE, HANDLE, KNIFE_PIPELINES, KNIFE_SHADOW, DEFAULT_HISTORY_NAME
)
from .transaction import run_atomic
from ..config import get_config_value
from ..errors import ErrorKind, InputInvalid, PipelineError, TargetInvalid
from ..host.base import HistoryControl, HostDocument
from ..host.models import DropShadow, LayerRef

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Outcome of one apply_pipeline call."""
    success: bool
    group: Optional[LayerRef] = None
    constructs: Dict[str, List[LayerRef]] = field(default_factory=dict)
    error_kind: Optional[ErrorKind] = None
    detail: Optional[str] = None

    @classmethod
    def ok(cls, group: LayerRef, constructs: Dict[str, List[LayerRef]]) -> 'PipelineResult':
        return cls(success=True, group=group, constructs=constructs)

    @classmethod
    def failed(cls, error: PipelineError) -> 'PipelineResult':
        return cls(success=False, error_kind=error.kind, detail=error.detail)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'group': self.group.to_dict() if self.group else None,
            'constructs': {
                role: [layer.to_dict() for layer in layers]
                for role, layers in self.constructs.items()
            },
            'error_kind': self.error_kind.value if self.error_kind else None,
            'detail': self.detail,
        }


async def resolve_binding(document: HostDocument,
                          layer_ids: Mapping[str, Optional[int]],
                          pipelines: Optional[Mapping[str, AdjustmentPipeline]] = None
                          ) -> RoleBinding:
    """
    Resolve role layer ids into a RoleBinding without touching the document.

    When pipelines are given, a role whose pipeline runs a filter must be
    bound to a layer that takes filters.

    Raises:
        InputInvalid: an id is missing or two roles share an id
        TargetInvalid: an id does not resolve, is not an adjustable layer,
            or cannot take a filter its pipeline runs
    """
    missing = [role for role, layer_id in layer_ids.items() if layer_id is None]
    if missing:
        raise InputInvalid(f"Select a layer for: {', '.join(missing)}")

    seen: Dict[int, str] = {}
    for role, layer_id in layer_ids.items():
        if layer_id in seen:
            raise InputInvalid(
                f"The {seen[layer_id]} and {role} layers cannot be the same (layer {layer_id})"
            )
        seen[layer_id] = role

    layers = {}
    for role, layer_id in layer_ids.items():
        layer = await document.get_layer(layer_id)
        if layer is None:
            raise TargetInvalid(f"Layer {layer_id} selected as {role} was not found")
        if not layer.is_valid_target:
            raise TargetInvalid(
                f"Layer {layer_id} ('{layer.name}') selected as {role} is a group or has no content"
            )
        filters = [d for d in (pipelines or {}).get(role, ()) if d.is_filter]
        if filters and not layer.accepts_filters:
            raise TargetInvalid(
                f"Layer {layer_id} ('{layer.name}') selected as {role} is a "
                f"{layer.kind.value} layer and cannot take {filters[0].kind.value}"
            )
        layers[role] = layer

    return RoleBinding(layers)


async def apply_pipeline(document: HostDocument, history: HistoryControl,
                         blade_layer_id: Optional[int], handle_layer_id: Optional[int],
                         pipelines: Mapping[str, AdjustmentPipeline] = KNIFE_PIPELINES,
                         effect: DropShadow = KNIFE_SHADOW,
                         history_name: str = DEFAULT_HISTORY_NAME) -> PipelineResult:
    """
    Adjust the blade and handle layers, then group and shade them.

    Validation happens before history is suspended, so invalid input never
    reaches the document. Every run creates new adjustment layers and a new
    group.

    Args:
        document: Host document holding both layers
        history: History control of the host
        blade_layer_id: Layer to run the blade pipeline on
        handle_layer_id: Layer to run the handle pipeline on
        pipelines: Ordered descriptors per role
        effect: Shadow for the resulting group
        history_name: Name of the single history entry

    Returns:
        PipelineResult with the new group, or the failure kind and detail
    """
    try:
        binding = await resolve_binding(
            document, {BLADE: blade_layer_id, HANDLE: handle_layer_id}, pipelines
        )
    except PipelineError as e:
        logger.warning(f"Rejected knife adjustment input: {e}")
        return PipelineResult.failed(e)

    runner = PipelineRunner(AdjustmentApplier(document))
    grouping = GroupingStage(document)

    async def body():
        constructs = await runner.run(binding, pipelines)
        all_constructs = [layer for layers in constructs.values() for layer in layers]
        group = await grouping.group_and_shade(list(binding.values()), effect, all_constructs)
        return group, constructs

    try:
        group, constructs = await run_atomic(history, document.id, history_name, body)
    except PipelineError as e:
        logger.error(f"Knife adjustments failed on document {document.id}: {e}")
        return PipelineResult.failed(e)

    logger.info(
        f"Applied knife adjustments on document {document.id}: group {group.id}, "
        f"{sum(len(layers) for layers in constructs.values())} adjustment layers"
    )
    return PipelineResult.ok(group, constructs)


class KnifeAdjuster:
    """
    Applies the knife pipelines to one document with configured settings.

    Args:
        document: Host document
        history: History control of the host
        config: Configuration dictionary (see bladeforge.config)
    """

    def __init__(self, document: HostDocument, history: HistoryControl,
                 config: Optional[Dict[str, Any]] = None):
        self.document = document
        self.history = history
        self.config = config or {}
        self.history_name = get_config_value(self.config, 'history.name', DEFAULT_HISTORY_NAME)
        self.pipelines = KNIFE_PIPELINES
        self.effect = KNIFE_SHADOW

    async def apply(self, blade_layer_id: Optional[int],
                    handle_layer_id: Optional[int]) -> PipelineResult:
        return await apply_pipeline(
            self.document, self.history, blade_layer_id, handle_layer_id,
            pipelines=self.pipelines, effect=self.effect, history_name=self.history_name,
        )
