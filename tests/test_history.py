"""
Tests for the history stack and its suspension scopes.
"""

import pytest

from bladeforge.processing.history import HistoryStack, HistoryError


def state(value):
    return {'value': value}


@pytest.fixture
def stack():
    history = HistoryStack(max_actions=50)
    history.initialize_session("test")
    return history


class TestUndoRedo:
    """Test plain undo/redo over whole states."""

    def test_initial_state(self, stack):
        assert not stack.can_undo()
        assert not stack.can_redo()
        assert stack.undo() is None

    def test_undo_and_redo(self, stack):
        stack.add_action("edit", "one", state(0), state(1))
        stack.add_action("edit", "two", state(1), state(2))

        assert stack.undo() == state(1)
        assert stack.undo() == state(0)
        assert stack.undo() is None
        assert stack.redo() == state(1)
        assert stack.can_redo()
        assert stack.redo() == state(2)
        assert stack.redo() is None

    def test_new_action_discards_redo_branch(self, stack):
        stack.add_action("edit", "one", state(0), state(1))
        stack.add_action("edit", "two", state(1), state(2))
        stack.undo()
        stack.add_action("edit", "three", state(1), state(3))

        assert len(stack.actions) == 2
        assert not stack.can_redo()
        assert stack.actions[-1].state_after == state(3)
        assert stack.undo() == state(1)

    def test_max_actions_trimmed(self):
        history = HistoryStack(max_actions=3)
        history.initialize_session("trim")
        for i in range(5):
            history.add_action("edit", f"step {i}", state(i), state(i + 1))
        assert len(history.actions) == 3
        assert history.actions[0].description == "step 2"

    def test_states_are_copied(self, stack):
        before = {'layers': [1]}
        after = {'layers': [1, 2]}
        stack.add_action("edit", "add", before, after)
        after['layers'].append(3)
        assert stack.undo() == {'layers': [1]}
        assert stack.redo() == {'layers': [1, 2]}


class TestSuspension:
    """Test suspension scopes collapsing changes into one entry."""

    def test_changes_collapse_into_one_action(self, stack):
        token = stack.suspend("Knife Adjustments")
        assert stack.is_suspended
        assert stack.add_action("edit", "one", state(0), state(1), affected_layers=[3]) is None
        assert stack.add_action("edit", "two", state(1), state(2), affected_layers=[4, 3]) is None
        assert stack.actions == []

        action_id = stack.resume(token)

        assert action_id is not None
        assert not stack.is_suspended
        assert len(stack.actions) == 1
        action = stack.actions[0]
        assert action.action_type == "suspended"
        assert action.description == "Knife Adjustments"
        assert action.state_before == state(0)
        assert action.state_after == state(2)
        assert action.affected_layers == [3, 4]
        assert action.metadata['collapsed_actions'] == 2

    def test_undo_reverts_whole_scope(self, stack):
        token = stack.suspend("scope")
        stack.add_action("edit", "one", state(0), state(1))
        stack.add_action("edit", "two", state(1), state(2))
        stack.resume(token)

        assert stack.undo() == state(0)
        assert not stack.can_undo()

    def test_empty_scope_records_nothing(self, stack):
        token = stack.suspend("nothing")
        assert stack.resume(token) is None
        assert stack.actions == []

    def test_nested_suspension_rejected(self, stack):
        stack.suspend("outer")
        with pytest.raises(HistoryError):
            stack.suspend("inner")

    def test_resume_with_wrong_id(self, stack):
        stack.suspend("scope")
        with pytest.raises(HistoryError):
            stack.resume("not-a-token")
        assert stack.is_suspended

    def test_no_undo_while_suspended(self, stack):
        stack.add_action("edit", "one", state(0), state(1))
        stack.suspend("scope")
        assert not stack.can_undo()
        assert stack.undo() is None

    def test_new_session_starts_empty(self, stack):
        stack.add_action("edit", "one", state(0), state(1))
        stack.suspend("scope")

        stack.initialize_session("fresh")

        assert stack.session_id == "fresh"
        assert stack.actions == []
        assert not stack.is_suspended
        assert not stack.can_undo()
