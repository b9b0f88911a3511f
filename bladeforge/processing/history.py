"""
History stack management for BladeForge documents.

Implements undo/redo over whole-document states, plus history suspension:
while a suspension is open every change is buffered, and resuming collapses
the buffered changes into a single history entry.
"""

import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
import copy


logger = logging.getLogger(__name__)


class HistoryError(Exception):
    """Raised on invalid history operations (nested or unknown suspensions)."""
    pass


@dataclass
class HistoryAction:
    """Represents a single entry in the history stack."""
    action_id: str
    timestamp: str
    action_type: str  # "create_layer", "move_layer", "suspended", etc.
    description: str
    state_before: Optional[Dict[str, Any]] = None
    state_after: Optional[Dict[str, Any]] = None
    affected_layers: List[int] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class _Suspension:
    """Buffered changes of an open suspension scope."""
    suspension_id: str
    name: str
    state_before: Optional[Dict[str, Any]] = None
    state_after: Optional[Dict[str, Any]] = None
    affected_layers: List[int] = field(default_factory=list)
    action_types: List[str] = field(default_factory=list)


class HistoryStack:
    """
    Manages undo/redo history for one document.

    Features:
    - Whole-state entries, restored on undo/redo
    - Suspension scopes that collapse many changes into one entry
    - Configurable retention limits
    """

    def __init__(self, max_actions: int = 100):
        """
        Initialize history stack.

        Args:
            max_actions: Maximum number of actions to retain
        """
        self.max_actions = max_actions

        self.actions: List[HistoryAction] = []

        # Index of the last applied action, -1 means the original state
        self.current_position = -1

        self.session_id: Optional[str] = None

        self._suspension: Optional[_Suspension] = None

        logger.debug(f"Initialized history stack: max_actions={max_actions}")

    def initialize_session(self, session_id: str) -> None:
        """Start a new editing session with an empty history."""
        self.session_id = session_id
        self.actions.clear()
        self.current_position = -1
        self._suspension = None

        logger.info(f"Initialized history for session {session_id}")

    @property
    def is_suspended(self) -> bool:
        return self._suspension is not None

    def add_action(self, action_type: str, description: str,
                   state_before: Dict[str, Any], state_after: Dict[str, Any],
                   affected_layers: Optional[List[int]] = None,
                   metadata: Optional[Dict[str, Any]] = None) -> Optional[str]:
        """
        Add a new action to the history stack.

        While a suspension is open the change is buffered instead and None
        is returned.

        Args:
            action_type: Type of action performed
            description: Human-readable description
            state_before: Document state before the action
            state_after: Document state after the action
            affected_layers: Ids of the layers the action touched
            metadata: Additional action metadata

        Returns:
            Unique action ID, or None when buffered
        """
        if self._suspension is not None:
            suspension = self._suspension
            if suspension.state_before is None:
                suspension.state_before = copy.deepcopy(state_before)
            suspension.state_after = copy.deepcopy(state_after)
            suspension.affected_layers.extend(affected_layers or [])
            suspension.action_types.append(action_type)
            logger.debug(f"Buffered action in '{suspension.name}': {action_type} - {description}")
            return None

        return self._push(HistoryAction(
            action_id=self._next_action_id(),
            timestamp=datetime.now().isoformat(),
            action_type=action_type,
            description=description,
            state_before=copy.deepcopy(state_before),
            state_after=copy.deepcopy(state_after),
            affected_layers=list(affected_layers or []),
            metadata=metadata or {}
        ))

    def suspend(self, name: str) -> str:
        """
        Open a suspension scope.

        Args:
            name: Name of the history entry the scope collapses into

        Returns:
            Suspension id to pass to resume()
        """
        if self._suspension is not None:
            raise HistoryError(
                f"History is already suspended by '{self._suspension.name}'"
            )

        self._suspension = _Suspension(suspension_id=uuid.uuid4().hex, name=name)
        logger.debug(f"Suspended history: {name}")
        return self._suspension.suspension_id

    def resume(self, suspension_id: str) -> Optional[str]:
        """
        Close a suspension scope and record its changes as one action.

        Args:
            suspension_id: Id returned by suspend()

        Returns:
            Id of the collapsed action, or None if nothing changed
        """
        suspension = self._suspension
        if suspension is None or suspension.suspension_id != suspension_id:
            raise HistoryError(f"No open suspension with id {suspension_id}")

        self._suspension = None

        if suspension.state_before is None:
            logger.debug(f"Resumed history '{suspension.name}' with no changes")
            return None

        action_id = self._push(HistoryAction(
            action_id=self._next_action_id(),
            timestamp=datetime.now().isoformat(),
            action_type="suspended",
            description=suspension.name,
            state_before=suspension.state_before,
            state_after=suspension.state_after,
            affected_layers=sorted(set(suspension.affected_layers)),
            metadata={
                'collapsed_actions': len(suspension.action_types),
                'action_types': suspension.action_types,
            }
        ))
        logger.debug(
            f"Resumed history '{suspension.name}': collapsed {len(suspension.action_types)} actions"
        )
        return action_id

    def undo(self) -> Optional[Dict[str, Any]]:
        """
        Undo the last action.

        Returns:
            Document state after undo, or None if nothing to undo
        """
        if not self.can_undo():
            logger.debug("Cannot undo: no previous actions")
            return None

        target_state = self.actions[self.current_position].state_before
        self.current_position -= 1

        logger.debug(f"Undo: moved to position {self.current_position}")
        return copy.deepcopy(target_state)

    def redo(self) -> Optional[Dict[str, Any]]:
        """
        Redo the next action.

        Returns:
            Document state after redo, or None if nothing to redo
        """
        if not self.can_redo():
            logger.debug("Cannot redo: no future actions")
            return None

        self.current_position += 1
        target_state = self.actions[self.current_position].state_after

        logger.debug(f"Redo: moved to position {self.current_position}")
        return copy.deepcopy(target_state)

    def can_undo(self) -> bool:
        """Check if undo is possible."""
        return self._suspension is None and self.current_position >= 0

    def can_redo(self) -> bool:
        """Check if redo is possible."""
        return self._suspension is None and self.current_position < len(self.actions) - 1

    def _push(self, action: HistoryAction) -> str:
        # Adding an action after undo discards the redo branch
        self.actions = self.actions[:self.current_position + 1]
        self.actions.append(action)

        if len(self.actions) > self.max_actions:
            removed_count = len(self.actions) - self.max_actions
            self.actions = self.actions[removed_count:]
            logger.debug(f"Trimmed {removed_count} old actions from history")

        self.current_position = len(self.actions) - 1

        logger.debug(f"Added action: {action.action_type} - {action.description}")
        return action.action_id

    def _next_action_id(self) -> str:
        return f"{self.session_id}_{len(self.actions)}_{datetime.now().strftime('%H%M%S%f')}"
