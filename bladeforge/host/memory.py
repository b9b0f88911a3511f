"""
In-memory host document for BladeForge.

Keeps a layer tree, applies filters to optional pixel data, and records every
change in a HistoryStack so suspended changes collapse into one undo step.
Used by the command line tools and the test suite.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Set, Tuple
import copy
import logging

import numpy as np

from .base import (
    HostDocument, HistoryControl, HostLayerNotFound, HostOperationFailed
)
from .filters import FILTERS
from .models import FILTERABLE_KINDS, LayerRef, LayerKind, DropShadow, Placement
from ..processing.history import HistoryStack, HistoryError

logger = logging.getLogger(__name__)

HUE_SATURATION_CHANNELS = (
    "master", "reds", "yellows", "greens", "cyans", "blues", "magentas"
)


@dataclass
class MemoryLayer:
    """A layer of an in-memory document."""
    id: int
    name: str
    kind: LayerKind = LayerKind.PIXEL
    has_bounds: bool = True
    visible: bool = True
    clipped: bool = False
    is_artboard: bool = False
    adjustment: Optional[Dict[str, Any]] = None
    effects: Dict[str, Any] = field(default_factory=dict)
    filters: List[Dict[str, Any]] = field(default_factory=list)
    children: List['MemoryLayer'] = field(default_factory=list)  # top to bottom
    pixels: Optional[np.ndarray] = field(default=None, repr=False, compare=False)
    image_path: Optional[str] = None

    @property
    def is_group(self) -> bool:
        return self.kind == LayerKind.GROUP

    def to_ref(self) -> LayerRef:
        return LayerRef(
            id=self.id,
            name=self.name,
            kind=self.kind,
            is_group=self.is_group,
            has_bounds=self.has_bounds,
        )


class InMemoryDocument(HostDocument):
    """
    Host document backed by plain Python objects.

    Args:
        document_id: Document identity
        name: Document name
        fail_on: Operation names that raise HostOperationFailed when called
        max_history: Maximum number of history entries to keep
    """

    def __init__(self, document_id: int = 1, name: str = "Untitled",
                 fail_on: Optional[Set[str]] = None, max_history: int = 100):
        self._id = document_id
        self.name = name
        self.layers: List[MemoryLayer] = []
        self.selection: List[int] = []
        self.fail_on = set(fail_on or ())
        self.mutation_count = 0
        self._next_id = 1

        self.history = HistoryStack(max_actions=max_history)
        self.history.initialize_session(f"doc{document_id}")

    @property
    def id(self) -> int:
        return self._id

    # Document setup (not recorded in history)

    def add_layer(self, name: str, kind: LayerKind = LayerKind.PIXEL,
                  layer_id: Optional[int] = None, parent_id: Optional[int] = None,
                  **attributes: Any) -> MemoryLayer:
        """
        Add a layer at the top of the document or of a group.

        Args:
            name: Layer name
            kind: Layer kind
            layer_id: Explicit id, next free id when omitted
            parent_id: Group to add the layer to
            **attributes: Extra MemoryLayer fields (pixels, has_bounds, ...)

        Returns:
            The new layer
        """
        if layer_id is None:
            layer_id = self._next_id
        if self.find(layer_id) is not None:
            raise ValueError(f"Layer id {layer_id} already exists")
        pixels = attributes.get('pixels')
        if pixels is not None and np.ndim(pixels) not in (2, 3):
            raise ValueError(f"Layer pixels must be (H, W) or (H, W, C), got shape {np.shape(pixels)}")

        layer = MemoryLayer(id=layer_id, name=name, kind=kind, **attributes)
        if layer.is_group:
            layer.has_bounds = attributes.get('has_bounds', False)

        if parent_id is None:
            self.layers.insert(0, layer)
        else:
            parent = self.find(parent_id)
            if parent is None or not parent.is_group:
                raise ValueError(f"Layer {parent_id} is not a group")
            parent.children.insert(0, layer)

        self._next_id = max(self._next_id, layer_id + 1)
        self.history.initialize_session(f"doc{self._id}")
        return layer

    def replace_layers(self, layers: List[MemoryLayer],
                       selection: Sequence[int] = ()) -> None:
        """Replace the whole layer tree and start a fresh history session."""
        self.layers = list(layers)
        ids = [layer.id for layer in self.iter_layers()]
        if len(ids) != len(set(ids)):
            raise ValueError("Layer ids must be unique")
        self.selection = [layer_id for layer_id in selection if layer_id in ids]
        self._next_id = max(ids, default=0) + 1
        self.history.initialize_session(f"doc{self._id}")

    # Lookup helpers

    def iter_layers(self) -> Iterator[MemoryLayer]:
        """Walk every layer depth-first, top to bottom."""
        def walk(layers):
            for layer in layers:
                yield layer
                yield from walk(layer.children)
        return walk(self.layers)

    def find(self, layer_id: int) -> Optional[MemoryLayer]:
        for layer in self.iter_layers():
            if layer.id == layer_id:
                return layer
        return None

    def parent_of(self, layer_id: int) -> Optional[MemoryLayer]:
        """Group holding the layer, None for top-level layers."""
        for layer in self.iter_layers():
            if any(child.id == layer_id for child in layer.children):
                return layer
        return None

    def stack_above(self, layer_id: int) -> List[MemoryLayer]:
        """Layers clipped to the given base layer, bottom to top."""
        container, index = self._locate(layer_id)
        stack = []
        for layer in reversed(container[:index]):
            if not layer.clipped:
                break
            stack.append(layer)
        return stack

    def clipping_base(self, layer_id: int) -> Optional[MemoryLayer]:
        """First unclipped layer below a clipped layer."""
        container, index = self._locate(layer_id)
        if not container[index].clipped:
            return None
        for layer in container[index + 1:]:
            if not layer.clipped:
                return layer
        return None

    def _locate(self, layer_id: int) -> Tuple[List[MemoryLayer], int]:
        parent = self.parent_of(layer_id)
        container = parent.children if parent else self.layers
        for index, layer in enumerate(container):
            if layer.id == layer_id:
                return container, index
        raise HostLayerNotFound(f"Layer {layer_id} not found in document {self._id}")

    def _require(self, layer_id: int) -> MemoryLayer:
        layer = self.find(layer_id)
        if layer is None:
            raise HostLayerNotFound(f"Layer {layer_id} not found in document {self._id}")
        return layer

    # History

    def _state(self) -> Dict[str, Any]:
        return {
            'layers': copy.deepcopy(self.layers),
            'selection': list(self.selection),
            'next_id': self._next_id,
        }

    def _restore(self, state: Dict[str, Any]) -> None:
        self.layers = state['layers']
        self.selection = state['selection']
        self._next_id = state['next_id']

    def undo(self) -> bool:
        """Step back one history entry. Returns False if nothing to undo."""
        state = self.history.undo()
        if state is None:
            return False
        self._restore(state)
        return True

    def redo(self) -> bool:
        """Step forward one history entry. Returns False if nothing to redo."""
        state = self.history.redo()
        if state is None:
            return False
        self._restore(state)
        return True

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise HostOperationFailed(f"Host refused '{operation}'")

    @contextmanager
    def _mutation(self, operation: str, description: str):
        """Record the changes made in the block as one history action."""
        self._check(operation)
        before = self._state()
        affected: List[int] = []
        yield affected
        self.mutation_count += 1
        self.history.add_action(operation, description, before, self._state(),
                                affected_layers=affected)

    # HostDocument implementation

    async def list_layers(self) -> List[LayerRef]:
        return [layer.to_ref() for layer in self.layers]

    async def get_layer(self, layer_id: int) -> Optional[LayerRef]:
        layer = self.find(layer_id)
        return layer.to_ref() if layer else None

    async def active_layers(self) -> List[LayerRef]:
        return [self.find(layer_id).to_ref() for layer_id in self.selection
                if self.find(layer_id) is not None]

    async def child_layers(self, group_id: int) -> List[LayerRef]:
        group = self._require(group_id)
        if not group.is_group:
            raise HostOperationFailed(f"Layer {group_id} is not a group")
        return [child.to_ref() for child in group.children]

    async def create_hue_saturation_layer(self, saturation: float,
                                          channel: str = "master") -> LayerRef:
        if channel not in HUE_SATURATION_CHANNELS:
            raise HostOperationFailed(f"Unknown hue/saturation channel: {channel}")
        settings = {
            'type': 'hueSaturation',
            'channel': channel,
            'hue': 0,
            'saturation': saturation,
            'lightness': 0,
        }
        return self._insert_adjustment("create_hue_saturation_layer", "Hue/Saturation", settings)

    async def create_curves_layer(self, points: Sequence[Tuple[int, int]]) -> LayerRef:
        if len(points) < 2:
            raise HostOperationFailed("Curves need at least two points")
        settings = {
            'type': 'curves',
            'points': sorted([int(x), int(y)] for x, y in points),
        }
        return self._insert_adjustment("create_curves_layer", "Curves", settings)

    async def create_brightness_contrast_layer(self, brightness: float,
                                               contrast: float) -> LayerRef:
        settings = {
            'type': 'brightnessContrast',
            'brightness': brightness,
            'contrast': contrast,
        }
        return self._insert_adjustment("create_brightness_contrast_layer", "Brightness/Contrast", settings)

    def _insert_adjustment(self, operation: str, base_name: str,
                           settings: Dict[str, Any]) -> LayerRef:
        with self._mutation(operation, f"New {base_name} layer") as affected:
            count = sum(1 for layer in self.iter_layers()
                        if layer.adjustment and layer.adjustment['type'] == settings['type'])
            layer = MemoryLayer(
                id=self._next_id,
                name=f"{base_name} {count + 1}",
                kind=LayerKind.ADJUSTMENT,
                has_bounds=False,
                adjustment=settings,
            )
            self._next_id += 1

            # New adjustment layers land above the active layer
            if self.selection and self.find(self.selection[0]) is not None:
                container, index = self._locate(self.selection[0])
                container.insert(index, layer)
            else:
                self.layers.insert(0, layer)

            self.selection = [layer.id]
            affected.append(layer.id)

        logger.debug(f"Created {settings['type']} layer {layer.id}")
        return layer.to_ref()

    async def move_layer(self, layer_id: int, relative_to: int,
                         placement: Placement = Placement.PLACE_ABOVE) -> None:
        if layer_id == relative_to:
            raise HostOperationFailed("Cannot move a layer relative to itself")
        layer = self._require(layer_id)
        anchor = self._require(relative_to)
        if layer.is_group and any(child.id == anchor.id for child in self._descendants(layer)):
            raise HostOperationFailed("Cannot move a group inside itself")

        with self._mutation("move_layer", f"Move {layer.name}") as affected:
            container, index = self._locate(layer_id)
            container.pop(index)
            container, index = self._locate(relative_to)
            if placement == Placement.PLACE_BELOW:
                index += 1
            container.insert(index, layer)
            affected.append(layer_id)

        logger.debug(f"Moved layer {layer_id} {placement.value} {relative_to}")

    def _descendants(self, layer: MemoryLayer) -> Iterator[MemoryLayer]:
        for child in layer.children:
            yield child
            yield from self._descendants(child)

    async def set_clipped(self, layer_id: int, clipped: bool = True) -> None:
        layer = self._require(layer_id)
        container, index = self._locate(layer_id)
        if clipped and index == len(container) - 1:
            raise HostOperationFailed(f"Layer {layer_id} has no layer below to clip to")

        with self._mutation("set_clipped", f"Clip {layer.name}") as affected:
            layer.clipped = clipped
            affected.append(layer_id)

    async def apply_filter(self, layer_id: int, filter_name: str, **params: Any) -> None:
        layer = self._require(layer_id)
        if filter_name not in FILTERS:
            raise HostOperationFailed(f"Unknown filter: {filter_name}")
        if layer.kind not in FILTERABLE_KINDS or not layer.has_bounds:
            raise HostOperationFailed(
                f"Filter {filter_name} cannot run on {layer.kind.value} layer {layer_id}"
            )

        with self._mutation("apply_filter", filter_name) as affected:
            if layer.pixels is not None:
                layer.pixels = FILTERS[filter_name](layer.pixels, **params)
            layer.filters.append({'name': filter_name, 'parameters': dict(params)})
            affected.append(layer_id)

        logger.debug(f"Applied {filter_name} to layer {layer_id}: {params}")

    async def select_layers(self, layer_ids: Sequence[int]) -> None:
        self._check("select_layers")
        for layer_id in layer_ids:
            self._require(layer_id)
        self.selection = list(layer_ids)

    async def group_selection(self) -> LayerRef:
        if not self.selection:
            raise HostOperationFailed("Nothing selected to group")

        selected = set(self.selection)
        members = []
        for layer in self.iter_layers():
            if layer.id not in selected:
                continue
            # Layers inside a selected group move with their group
            parent = self.parent_of(layer.id)
            while parent is not None and parent.id not in selected:
                parent = self.parent_of(parent.id)
            if parent is None:
                members.append(layer)

        with self._mutation("group_layers", "Group Layers") as affected:
            container, index = self._locate(members[0].id)
            for member in members:
                member_container, member_index = self._locate(member.id)
                member_container.pop(member_index)

            count = sum(1 for layer in self.iter_layers() if layer.is_group)
            group = MemoryLayer(
                id=self._next_id,
                name=f"Group {count + 1}",
                kind=LayerKind.GROUP,
                has_bounds=True,
                children=members,
            )
            self._next_id += 1
            container.insert(index, group)
            self.selection = [group.id]
            affected.extend([group.id] + [member.id for member in members])

        logger.debug(f"Grouped {len(members)} layers into group {group.id}")
        return group.to_ref()

    async def set_layer_effect(self, layer_id: int, effect: DropShadow) -> None:
        layer = self._require(layer_id)
        if layer.kind == LayerKind.ADJUSTMENT:
            raise HostOperationFailed(f"Adjustment layer {layer_id} cannot carry effects")

        with self._mutation("set_layer_effect", "Layer Style") as affected:
            layer.effects['dropShadow'] = {'enabled': True, **effect.to_dict()}
            affected.append(layer_id)


@dataclass(frozen=True)
class SuspensionToken:
    """Token handed out by InMemoryHistory.suspend_history."""
    document_id: int
    suspension_id: str
    name: str


class InMemoryHistory(HistoryControl):
    """
    History suspension pair for InMemoryDocuments.

    Args:
        *documents: Documents this controller can suspend
        fail_on: "suspend_history" and/or "resume_history" to inject failures
    """

    def __init__(self, *documents: InMemoryDocument, fail_on: Optional[Set[str]] = None):
        self.documents: Dict[int, InMemoryDocument] = {}
        self.fail_on = set(fail_on or ())
        self.suspend_count = 0
        self.resume_count = 0
        for document in documents:
            self.register(document)

    def register(self, document: InMemoryDocument) -> None:
        self.documents[document.id] = document

    async def suspend_history(self, document_id: int, name: str) -> SuspensionToken:
        if "suspend_history" in self.fail_on:
            raise HostOperationFailed("Host refused to suspend history")
        document = self.documents.get(document_id)
        if document is None:
            raise HostOperationFailed(f"Unknown document {document_id}")

        try:
            suspension_id = document.history.suspend(name)
        except HistoryError as e:
            raise HostOperationFailed(str(e)) from e

        self.suspend_count += 1
        return SuspensionToken(document_id, suspension_id, name)

    async def resume_history(self, token: SuspensionToken) -> None:
        self.resume_count += 1
        document = self.documents.get(token.document_id)
        if document is None:
            raise HostOperationFailed(f"Unknown document {token.document_id}")

        try:
            document.history.resume(token.suspension_id)
        except HistoryError as e:
            raise HostOperationFailed(str(e)) from e

        # Injected failures fire after the scope is closed
        if "resume_history" in self.fail_on:
            raise HostOperationFailed("Host refused to resume history")
