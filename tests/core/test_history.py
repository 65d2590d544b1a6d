"""
Tests for the linear undo/redo history.
"""

import pytest
from lifeplanlab.core.errors import ConfigError, HistoryBoundary
from lifeplanlab.core.history import HistoryStack


class TestLinearity:
    def test_undo_then_push_discards_redo(self):
        """Three pushes and two undos restore S1; a new push drops S2 and S3."""
        history = HistoryStack("S0")
        for snapshot in ("S1", "S2", "S3"):
            history.push(snapshot)
        history.undo()
        assert history.undo() == "S1"

        history.push("S4")
        assert not history.can_redo
        assert history.redo() == "S4"
        assert history.entries() == ["S0", "S1", "S4"]

    def test_boundaries_are_no_ops(self):
        history = HistoryStack("S0")
        assert not history.can_undo
        assert history.undo() == "S0"
        assert history.redo() == "S0"
        history.push("S1")
        assert history.redo() == "S1"
        assert history.index == 1

    def test_redo_walks_forward(self):
        history = HistoryStack(0)
        for n in range(1, 4):
            history.push(n)
        history.undo()
        history.undo()
        assert history.redo() == 2
        assert history.redo() == 3
        assert not history.can_redo


class TestCap:
    def test_oldest_entries_dropped(self):
        history = HistoryStack(0, max_entries=3)
        for n in range(1, 6):
            history.push(n)
        assert history.entries() == [3, 4, 5]
        assert len(history) == 3
        assert history.current == 5
        history.undo()
        history.undo()
        assert not history.can_undo
        assert history.current == 3

    def test_invalid_cap(self):
        with pytest.raises(ConfigError):
            HistoryStack(0, max_entries=0)


class TestRestoreAndReset:
    def test_restore(self):
        history = HistoryStack("a")
        history.push("b")
        history.push("c")
        assert history.restore(0) == "a"
        assert history.can_redo

    @pytest.mark.parametrize("index", [-1, 3])
    def test_restore_out_of_range(self, index):
        history = HistoryStack("a")
        history.push("b")
        history.push("c")
        with pytest.raises(HistoryBoundary):
            history.restore(index)
        assert history.current == "c"

    def test_reset(self):
        history = HistoryStack("a")
        history.push("b")
        history.reset("z")
        assert history.entries() == ["z"]
        assert not history.can_undo
