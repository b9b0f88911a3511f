"""
Layer pipeline runner.

Runs each role's adjustment list against the layer bound to that role,
one descriptor at a time, threading the top of the role's stack through
the loop so every adjustment clips to the one created before it.
"""

from typing import Dict, Iterable, Iterator, List, Mapping, Sequence

from .adjustments.applier import AdjustmentApplier
from .adjustments.models import AdjustmentPipeline
from .presets import ROLE_ORDER
from ..errors import InputInvalid, PipelineError
from ..host.models import LayerRef
from ..utils.logging import StructuredLogger

slog = StructuredLogger(__name__)


class RoleBinding(Mapping[str, LayerRef]):
    """
    Read-only mapping of role name to the layer playing that role.

    Raises:
        InputInvalid: if two roles are bound to the same layer
    """

    def __init__(self, bindings: Mapping[str, LayerRef]):
        seen: Dict[int, str] = {}
        for role, layer in bindings.items():
            if layer.id in seen:
                raise InputInvalid(
                    f"Roles '{seen[layer.id]}' and '{role}' are both bound to layer {layer.id}"
                )
            seen[layer.id] = role
        self._bindings = dict(bindings)

    def __getitem__(self, role: str) -> LayerRef:
        return self._bindings[role]

    def __iter__(self) -> Iterator[str]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def missing(self, roles: Iterable[str]) -> List[str]:
        """Roles from the given list with no layer bound."""
        return [role for role in roles if role not in self._bindings]

    def __repr__(self) -> str:
        bound = ", ".join(f"{role}={layer.id}" for role, layer in self._bindings.items())
        return f"RoleBinding({bound})"


def ordered_roles(roles: Iterable[str], role_order: Sequence[str] = ROLE_ORDER) -> List[str]:
    """Known roles in their fixed order, then any others sorted by name."""
    roles = list(roles)
    known = [role for role in role_order if role in roles]
    return known + sorted(role for role in roles if role not in role_order)


class PipelineRunner:
    """Applies per-role adjustment pipelines in a deterministic order."""

    def __init__(self, applier: AdjustmentApplier, role_order: Sequence[str] = ROLE_ORDER):
        self.applier = applier
        self.role_order = tuple(role_order)

    async def run(self, binding: RoleBinding,
                  pipelines: Mapping[str, AdjustmentPipeline]) -> Dict[str, List[LayerRef]]:
        """
        Run every role's pipeline.

        Stops at the first failing descriptor and re-raises; constructs made
        before the failure are left in the document.

        Args:
            binding: Layer bound to each role
            pipelines: Ordered descriptors per role

        Returns:
            Adjustment layers created per role, bottom to top
        """
        missing = binding.missing(pipelines)
        if missing:
            raise InputInvalid(f"No layer bound for roles: {', '.join(missing)}")

        created: Dict[str, List[LayerRef]] = {}
        for role in ordered_roles(pipelines, self.role_order):
            created[role] = await self._run_role(role, binding[role], pipelines[role])
        return created

    async def _run_role(self, role: str, target: LayerRef,
                        pipeline: AdjustmentPipeline) -> List[LayerRef]:
        log = slog.bind(role=role, target=target.id)
        log.info(f"Adjusting '{target.name}'", steps=len(pipeline))

        constructs: List[LayerRef] = []
        top = target
        for step, descriptor in enumerate(pipeline, 1):
            log.debug("Applying adjustment", step=step, adjustment=descriptor.describe(), top=top.id)
            try:
                new_top = await self.applier.apply(descriptor, target, top)
            except PipelineError as e:
                log.error("Adjustment failed", step=step, kind=e.kind.value, detail=e.detail)
                raise

            if new_top.id != top.id:
                constructs.append(new_top)
                top = new_top

        return constructs
